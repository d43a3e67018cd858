"""
Chunking Context Module

Caller-supplied document context, validated once at the API boundary.

Components:
- ChunkingContext: Resolved context with typed, optional fields
- CacheKeyContext: Frozen, flat projection of the context used in cache keys
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Primitive = Union[str, int, float, bool, None]
PRIMITIVE_TYPES = (str, int, float, bool, type(None))

# accepted spellings of each context key
_KEY_ALIASES = {
    "document_type": ("document_type", "documentType"),
    "structure": ("structure",),
    "semantics": ("semantics",),
    "processing_options": ("processing_options", "processingOptions"),
}


def _flat_items(mapping: Mapping[str, Any]) -> Tuple[Tuple[str, Primitive], ...]:
    """Sorted primitive-valued items of a mapping; nested values are skipped."""
    return tuple(sorted(
        (str(key), value) for key, value in mapping.items()
        if isinstance(value, PRIMITIVE_TYPES)
    ))


@dataclass(frozen=True)
class CacheKeyContext:
    """
    Flat, serializable view of a ChunkingContext.

    Only primitive values survive, which keeps cache keys free of cycles and
    unhashable objects.
    """
    document_type: Optional[str] = None
    structure: Tuple[Tuple[str, Primitive], ...] = ()
    semantics: Tuple[Tuple[str, Primitive], ...] = ()
    processing_options: Tuple[Tuple[str, Primitive], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_type": self.document_type,
            "structure": dict(self.structure),
            "semantics": dict(self.semantics),
            "processing_options": dict(self.processing_options),
        }


@dataclass
class ChunkingContext:
    """
    Document context for a chunking call.

    Attributes:
        document_type: Caller's document type label (e.g. ``"user_guide"``)
        structure: Structural hints such as ``has_structure`` or ``has_hierarchy``
        semantics: Semantic hints; ``type`` or ``semantic_type`` names the semantic type
        processing_options: Free-form processing options

    Example:
        >>> context = ChunkingContext.from_mapping({"documentType": "faq", "structure": "bad"})
        >>> context.document_type, context.structure
        ('faq', {})
    """
    document_type: Optional[str] = None
    structure: Dict[str, Any] = field(default_factory=dict)
    semantics: Dict[str, Any] = field(default_factory=dict)
    processing_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.document_type is not None and not isinstance(self.document_type, str):
            raise TypeError(f"document_type must be a string or None, got: {type(self.document_type)}")
        for name in ("structure", "semantics", "processing_options"):
            if not isinstance(getattr(self, name), dict):
                raise TypeError(f"{name} must be a dict, got: {type(getattr(self, name))}")

    @classmethod
    def from_mapping(cls, value: Union["ChunkingContext", Mapping[str, Any], None]) -> "ChunkingContext":
        """
        Resolve a caller context.

        Accepts None, a ChunkingContext or a mapping. Malformed fields are
        dropped with a warning; this method never raises.
        """
        if value is None:
            return cls()
        if isinstance(value, ChunkingContext):
            return value
        if not isinstance(value, Mapping):
            logger.warning(f"Ignoring context of unsupported type {type(value).__name__}")
            return cls()

        resolved: Dict[str, Any] = {}
        for name, aliases in _KEY_ALIASES.items():
            raw = next((value[alias] for alias in aliases if alias in value), None)
            if raw is None:
                continue

            if name == "document_type":
                if isinstance(raw, str):
                    resolved[name] = raw
                else:
                    logger.warning(f"Dropping context field '{name}': expected string, got {type(raw).__name__}")
            elif isinstance(raw, Mapping):
                resolved[name] = dict(raw)
            else:
                logger.warning(f"Dropping context field '{name}': expected mapping, got {type(raw).__name__}")

        return cls(**resolved)

    @property
    def semantic_type(self) -> Optional[str]:
        value = self.semantics.get("type", self.semantics.get("semantic_type"))
        return value if isinstance(value, str) else None

    @property
    def has_structure(self) -> bool:
        return bool(self.structure.get("has_structure", False))

    @property
    def has_hierarchy(self) -> bool:
        return bool(self.structure.get("has_hierarchy", False))

    def to_cache_key_context(self) -> CacheKeyContext:
        return CacheKeyContext(
            document_type=self.document_type,
            structure=_flat_items(self.structure),
            semantics=_flat_items(self.semantics),
            processing_options=_flat_items(self.processing_options),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_type": self.document_type,
            "structure": dict(self.structure),
            "semantics": dict(self.semantics),
            "processing_options": dict(self.processing_options),
        }
