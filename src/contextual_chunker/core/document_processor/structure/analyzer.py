"""
Structure Analyzer - Document Structure Detection and Scoring

This module provides the StructureAnalyzer, which inspects a document before
chunking and reports its headings, sections, numbered hierarchy, content
structures, cross-references and navigation tree. It scores the structural
quality of the document and recommends a processing approach and chunking
strategy.

Key Components:
- StructureAnalyzer: Guarded analysis with result caching and statistics

Analysis never raises: any failure produces a fallback analysis that forces
the ``simple`` chunking strategy.

Usage:
    >>> analyzer = StructureAnalyzer()
    >>> analysis = analyzer.analyze("# Setup\\n\\nInstall the tool.")
    >>> analysis.headings[0].text
    'Setup'
"""

import hashlib
import logging
import re
import threading
import time
from statistics import mean
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ....exceptions.system_exceptions import ErrorContext, StructureAnalysisError
from ....utils.error_handler import ErrorHandler
from ...result_cache import ResultCache
from ..atomic_units.extractor import ContentStructureExtractor
from ..atomic_units.types import ContentStructures
from ..chunking.config import ChunkingStrategy
from . import patterns
from .tree import HierarchyNode
from .types import (
    CrossReference,
    Heading,
    HierarchyCharacteristics,
    NavigationAnalysis,
    ProcessingPriority,
    ProcessingRecommendation,
    RecommendationApproach,
    Section,
    SectionCharacteristics,
    SectionType,
    StructureAnalysis,
    StructureQuality,
    StructureQualityConstants,
)

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURE_CACHE_CAPACITY = 1000


class StructureAnalyzer:
    """
    Analyzes document structure ahead of chunking.

    Heading patterns are injectable as an ordered mapping of
    ``name -> (pattern, flags)``. They are compiled inside the guarded
    analysis, so a malformed custom pattern yields a fallback analysis
    instead of an exception.

    Attributes:
        heading_patterns: Ordered heading patterns
        constants: Structural quality constants
        cache: Result cache for analyses, or None when caching is disabled

    Example:
        >>> analyzer = StructureAnalyzer(heading_patterns={"bad": ("(unclosed", 0)})
        >>> analyzer.analyze("Some text").fallback
        True
    """

    def __init__(
        self,
        heading_patterns: Optional[Mapping[str, Tuple[str, int]]] = None,
        constants: Optional[StructureQualityConstants] = None,
        cache: Optional[ResultCache] = None,
        enable_cache: bool = True,
        content_extractor: Optional[ContentStructureExtractor] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.heading_patterns: Dict[str, Tuple[str, int]] = dict(
            heading_patterns if heading_patterns is not None else patterns.DEFAULT_HEADING_PATTERNS
        )
        self.constants = constants or StructureQualityConstants()
        self.cache = (cache or ResultCache(DEFAULT_STRUCTURE_CACHE_CAPACITY)) if enable_cache else None
        self.content_extractor = content_extractor or ContentStructureExtractor()
        self.error_handler = error_handler or ErrorHandler(logger=logger)

        self._analysis_count = 0
        self._total_time_ms = 0.0
        self._fallback_count = 0
        self._stats_lock = threading.Lock()

    def analyze(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> StructureAnalysis:
        """
        Analyze the structure of a document.

        Args:
            content: Document text
            metadata: Optional document metadata; ``document_id`` is used in error reports

        Returns:
            StructureAnalysis, with ``fallback=True`` if analysis failed
        """
        if content is None:
            content = ""
        elif not isinstance(content, str):
            content = str(content)

        cache_key = None
        if self.cache is not None:
            cache_key = hashlib.md5(content.encode("utf-8")).hexdigest()
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug("Structure analysis served from cache")
                return cached

        start_time = time.perf_counter()
        try:
            analysis = self._run_analysis(content)
        except Exception as e:
            document_id = (metadata or {}).get("document_id")
            error = StructureAnalysisError(
                f"Structure analysis failed: {e}",
                pattern_source=getattr(e, "pattern_source", None),
                context=ErrorContext(operation="structure_analysis", document_id=document_id),
                original_exception=e,
            )
            self.error_handler.handle_error(error)
            analysis = self._fallback_analysis(str(error))
            with self._stats_lock:
                self._fallback_count += 1

        elapsed_ms = (time.perf_counter() - start_time) * 1000.0
        analysis.processing_time_ms = elapsed_ms
        with self._stats_lock:
            self._analysis_count += 1
            self._total_time_ms += elapsed_ms

        if cache_key is not None and not analysis.fallback:
            self.cache.put(cache_key, analysis)

        logger.debug(
            f"Structure analysis: {len(analysis.headings)} headings, {len(analysis.sections)} sections, "
            f"quality={analysis.quality.overall:.2f}, strategy={analysis.recommendation.chunking_strategy.value}"
        )
        return analysis

    def _run_analysis(self, content: str) -> StructureAnalysis:
        compiled = self._compile_heading_patterns()

        headings = self._detect_headings(content, compiled)
        consistent = self._headings_consistent(headings)
        sections = self._detect_sections(content)
        characteristics = self._section_characteristics(sections)
        content_structures = self.content_extractor.extract(content)
        cross_references = self._detect_cross_references(content, headings)
        hierarchy = self._build_hierarchy(content)
        hierarchy_characteristics = self._hierarchy_characteristics(hierarchy)
        navigation = self._analyze_navigation(headings, cross_references)

        analysis = StructureAnalysis(
            headings=headings,
            heading_consistent=consistent,
            sections=sections,
            section_characteristics=characteristics,
            hierarchy=hierarchy,
            hierarchy_characteristics=hierarchy_characteristics,
            content_structures=content_structures,
            cross_references=cross_references,
            navigation=navigation,
        )
        analysis.quality = self._assess_quality(analysis)
        analysis.recommendation = self._recommend(analysis)
        return analysis

    # ------------------------------------------------------------------
    # Headings
    # ------------------------------------------------------------------

    def _compile_heading_patterns(self) -> List[Tuple[str, re.Pattern]]:
        compiled = []
        for name, (pattern, flags) in self.heading_patterns.items():
            try:
                compiled.append((name, re.compile(pattern, flags)))
            except re.error as e:
                raise StructureAnalysisError(
                    f"Invalid heading pattern '{name}': {e}", pattern_source=name
                ) from e
        return compiled

    def _detect_headings(self, content: str, compiled: List[Tuple[str, re.Pattern]]) -> List[Heading]:
        seen = set()
        found: List[Tuple[int, str, int, str]] = []

        for source, regex in compiled:
            for match in regex.finditer(content):
                text, level = self._heading_text_and_level(source, match)
                text = text.strip()
                if not patterns.MIN_HEADING_LENGTH <= len(text) <= patterns.MAX_HEADING_LENGTH:
                    continue
                key = (text, match.start())
                if key in seen:
                    continue
                seen.add(key)
                found.append((match.start(), text, min(max(level, 1), 6), source))

        found.sort(key=lambda item: item[0])
        return [
            Heading(
                id=f"heading_{index}",
                text=text,
                level=level,
                position=position,
                line_number=content.count('\n', 0, position) + 1,
                pattern_source=source,
            )
            for index, (position, text, level, source) in enumerate(found)
        ]

    @staticmethod
    def _heading_text_and_level(source: str, match: re.Match) -> Tuple[str, int]:
        groups = match.groups()
        if source == "markdown":
            return groups[1], len(groups[0])
        if source == "numbered":
            return groups[1], len([part for part in groups[0].split('.') if part])
        if source == "all_caps":
            return groups[0], patterns.ALL_CAPS_LEVEL
        if source == "underlined":
            return groups[0], 1 if groups[1].startswith('=') else 2
        if source in ("step", "section"):
            return f"{groups[0]} {groups[1]}".strip(), patterns.FIXED_MARKER_LEVEL

        # custom pattern: last non-empty group is the text
        text = next((g for g in reversed(groups) if g), match.group(0))
        return text, 1

    def _headings_consistent(self, headings: List[Heading]) -> bool:
        if not headings:
            return False

        for previous, current in zip(headings, headings[1:]):
            if current.level > previous.level + 1:
                return False

        counts: Dict[str, int] = {}
        for heading in headings:
            counts[heading.pattern_source] = counts.get(heading.pattern_source, 0) + 1
        return max(counts.values()) / len(headings) >= self.constants.consistency_share

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _detect_sections(self, content: str) -> List[Section]:
        lines = content.split('\n')
        openers = [
            index for index, line in enumerate(lines)
            if self._is_section_opener(line)
        ]

        sections = []
        for number, start in enumerate(openers):
            end = openers[number + 1] if number + 1 < len(openers) else len(lines)
            body = '\n'.join(lines[start + 1:end]).strip()
            word_count = len(body.split())

            if not patterns.MIN_SECTION_LENGTH <= len(body) <= patterns.MAX_SECTION_LENGTH:
                continue
            if word_count < patterns.MIN_SECTION_WORDS:
                continue

            sections.append(Section(
                id=f"section_{len(sections)}",
                heading_text=patterns.OPENER_PREFIX.sub('', lines[start].strip()),
                content=body,
                start_line=start + 1,
                end_line=max(end, start + 1),
                word_count=word_count,
                type=self._classify_section(body),
            ))
        return sections

    @staticmethod
    def _is_section_opener(line: str) -> bool:
        stripped = line.strip()
        if not stripped or len(stripped) > patterns.MAX_HEADING_LENGTH:
            return False
        candidate = patterns.OPENER_PREFIX.sub('', stripped)
        return any(opener.match(candidate) for opener in patterns.SECTION_OPENERS)

    @staticmethod
    def _classify_section(body: str) -> SectionType:
        for type_name, regex in patterns.SECTION_TYPE_PATTERNS:
            if regex.search(body):
                return SectionType(type_name)
        return SectionType.GENERAL

    @staticmethod
    def _section_characteristics(sections: List[Section]) -> SectionCharacteristics:
        characteristics = SectionCharacteristics()
        if not sections:
            return characteristics

        for section in sections:
            if patterns.STEP_CONTENT.search(section.content):
                characteristics.has_step_by_step = True
            if patterns.DEFINITION_CONTENT.search(section.content):
                characteristics.has_definitions = True
            if patterns.PROCEDURE_CONTENT.search(section.content):
                characteristics.has_procedures = True
            if patterns.EXAMPLE_CONTENT.search(section.content):
                characteristics.has_examples = True

        characteristics.average_length = mean(len(s.content) for s in sections)
        return characteristics

    # ------------------------------------------------------------------
    # Cross-references, hierarchy and navigation
    # ------------------------------------------------------------------

    @staticmethod
    def _detect_cross_references(content: str, headings: List[Heading]) -> List[CrossReference]:
        references = [
            CrossReference(type="see_also", content=match.group(1).strip(), position=match.start())
            for match in patterns.SEE_ALSO.finditer(content)
        ]

        for heading in headings:
            regex = re.compile(r'\bsee\b[^.\n]{0,40}?' + re.escape(heading.text), re.IGNORECASE)
            for match in regex.finditer(content):
                if match.start() == heading.position:
                    continue
                references.append(CrossReference(
                    type="heading_reference",
                    content=match.group(0).strip(),
                    position=match.start(),
                    target_heading=heading.text,
                ))

        references.sort(key=lambda ref: ref.position)
        return references

    @staticmethod
    def _build_hierarchy(content: str) -> HierarchyNode:
        items = []
        for match in patterns.HIERARCHY_ITEM.finditer(content):
            if match.group("number"):
                level = min(len(match.group("number").split('.')), 6)
                label = f"{match.group('number')} {match.group('text')}"
                source = "numbered"
            else:
                level = patterns.FIXED_MARKER_LEVEL
                label = f"{match.group('step')} {match.group('text')}"
                source = "step"
            items.append((label.strip(), level, match.start(), source))
        return HierarchyNode.build(items)

    @staticmethod
    def _hierarchy_characteristics(hierarchy: HierarchyNode) -> HierarchyCharacteristics:
        depth = hierarchy.depth()
        total = hierarchy.count_nodes()
        return HierarchyCharacteristics(
            max_depth=depth,
            total_nodes=total,
            is_well_structured=depth >= 2 and total >= 3,
        )

    @staticmethod
    def _analyze_navigation(headings: List[Heading], references: List[CrossReference]) -> NavigationAnalysis:
        tree = HierarchyNode.build(
            (heading.text, heading.level, heading.position, heading.pattern_source)
            for heading in headings
        )
        navigation = NavigationAnalysis(
            tree=tree,
            has_hierarchical_structure=len(tree.children) > 0,
            max_depth=tree.depth(),
            has_cross_references=bool(references),
            is_well_structured=len(tree.children) >= 2,
        )

        if not navigation.has_hierarchical_structure:
            navigation.recommendations.append("Add hierarchical headings for better navigation")
        if navigation.max_depth < 2:
            navigation.recommendations.append("Consider adding sub-sections for better organization")
        if not navigation.has_cross_references:
            navigation.recommendations.append("Add cross-references between related sections")
        return navigation

    # ------------------------------------------------------------------
    # Quality and recommendation
    # ------------------------------------------------------------------

    def _assess_quality(self, analysis: StructureAnalysis) -> StructureQuality:
        c = self.constants

        heading_quality = c.base
        if analysis.headings:
            heading_quality += c.heading_present
        if analysis.heading_consistent:
            heading_quality += c.heading_consistent
        if analysis.max_heading_level >= 2:
            heading_quality += c.heading_multi_level

        chars = analysis.section_characteristics
        section_quality = c.base
        if analysis.sections:
            section_quality += c.section_present
        if chars.has_step_by_step:
            section_quality += c.section_steps
        if chars.has_definitions:
            section_quality += c.section_definitions
        if chars.average_length > c.section_long_threshold:
            section_quality += c.section_long

        hierarchy = analysis.hierarchy_characteristics
        hierarchy_quality = c.base
        if hierarchy.is_well_structured:
            hierarchy_quality += c.hierarchy_well_structured
        if hierarchy.max_depth >= 2:
            hierarchy_quality += c.hierarchy_deep

        structures: ContentStructures = analysis.content_structures
        content_quality = c.base
        if structures.has_rich_structure:
            content_quality += c.content_rich
        if structures.lists:
            content_quality += c.content_lists
        if structures.definitions:
            content_quality += c.content_definitions

        scores = [min(score, 1.0) for score in
                  (heading_quality, section_quality, hierarchy_quality, content_quality)]
        overall = mean(scores)
        complexity = min(mean([
            analysis.max_heading_level / 6.0,
            len(analysis.sections) / 10.0,
            hierarchy.max_depth / 5.0,
        ]), 1.0)

        return StructureQuality(
            heading_quality=scores[0],
            section_quality=scores[1],
            hierarchy_quality=scores[2],
            content_quality=scores[3],
            overall=overall,
            complexity=complexity,
            is_well_structured=overall >= c.well_structured_threshold,
            has_good_headings=scores[0] >= c.good_component_threshold,
            has_good_sections=scores[1] >= c.good_component_threshold,
            has_good_hierarchy=scores[2] >= c.good_component_threshold,
            has_good_content_structure=scores[3] >= c.good_component_threshold,
        )

    def _recommend(self, analysis: StructureAnalysis) -> ProcessingRecommendation:
        quality = analysis.quality
        headings = analysis.headings

        if quality.has_good_hierarchy:
            approach = RecommendationApproach.HIERARCHICAL
        elif quality.has_good_sections:
            approach = RecommendationApproach.SECTION_BASED
        elif len(headings) >= 2 and analysis.heading_consistent:
            approach = RecommendationApproach.HEADING_BASED
        else:
            approach = RecommendationApproach.ADAPTIVE

        step_headings = sum(1 for h in headings if h.pattern_source == "step")
        procedural = analysis.section_characteristics.has_step_by_step or step_headings >= 2
        if procedural:
            strategy = ChunkingStrategy.PROCEDURE_PRESERVING
        elif approach != RecommendationApproach.ADAPTIVE:
            strategy = ChunkingStrategy.STRUCTURE_PRESERVING
        else:
            strategy = ChunkingStrategy.SEMANTIC_ADAPTIVE

        special_handling = []
        enhance_headings = len(headings) < 3 or not analysis.heading_consistent
        if enhance_headings:
            special_handling.append("heading_enhancement")
        if procedural:
            special_handling.append("procedure_preservation")
        if analysis.section_characteristics.has_definitions or analysis.content_structures.definitions:
            special_handling.append("definition_enhancement")

        if quality.overall >= self.constants.high_priority_threshold:
            priority = ProcessingPriority.HIGH
        elif quality.overall <= self.constants.low_priority_threshold:
            priority = ProcessingPriority.LOW
            special_handling.append("quality_improvement")
        else:
            priority = ProcessingPriority.NORMAL

        return ProcessingRecommendation(
            approach=approach,
            chunking_strategy=strategy,
            preserve_structure=approach != RecommendationApproach.ADAPTIVE,
            enhance_headings=enhance_headings,
            processing_priority=priority,
            special_handling=special_handling,
        )

    def _fallback_analysis(self, error_message: str) -> StructureAnalysis:
        overall = self.constants.fallback_overall
        return StructureAnalysis(
            quality=StructureQuality(overall=overall),
            recommendation=ProcessingRecommendation(
                approach=RecommendationApproach.ADAPTIVE,
                chunking_strategy=ChunkingStrategy.SIMPLE,
                preserve_structure=False,
                enhance_headings=True,
                processing_priority=ProcessingPriority.LOW,
                special_handling=["heading_enhancement", "quality_improvement"],
            ),
            fallback=True,
            error=error_message,
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_performance_stats(self) -> Dict[str, Any]:
        """Analysis counts, timing and cache effectiveness."""
        cache_stats = self.cache.get_stats() if self.cache is not None else {}
        with self._stats_lock:
            analysis_count = self._analysis_count
            fallback_count = self._fallback_count
            total_time_ms = self._total_time_ms
        return {
            "analysis_count": analysis_count,
            "fallback_count": fallback_count,
            "average_processing_time_ms": total_time_ms / analysis_count if analysis_count else 0.0,
            "cache_hits": cache_stats.get("hits", 0),
            "cache_hit_rate": cache_stats.get("hit_rate", 0.0),
            "cache_size": cache_stats.get("size", 0),
        }

    def clear_caches(self) -> None:
        """Drop all cached analyses."""
        if self.cache is not None:
            self.cache.clear()
        logger.info("Structure analyzer caches cleared")
