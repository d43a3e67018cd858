"""
Content Structure Registry

Registry of handlers per content element type. Custom handlers can replace
the defaults, which keeps detection pluggable.
"""

from typing import Any, Dict, List, Optional

from .types import ContentElementType
from .handlers import (
    CodeBlockHandler,
    DefinitionHandler,
    ListHandler,
    TableHandler,
)


class ContentStructureRegistry:
    """Registry for content element handlers."""

    def __init__(self):
        """Initialize registry with default handlers."""
        self._handlers: Dict[ContentElementType, Any] = {}
        self._register_default_handlers()

    def _register_default_handlers(self):
        self.register(ContentElementType.LIST, ListHandler())
        self.register(ContentElementType.TABLE, TableHandler())
        self.register(ContentElementType.CODE_BLOCK, CodeBlockHandler())
        self.register(ContentElementType.DEFINITION, DefinitionHandler())

    def register(self, element_type: ContentElementType, handler: Any):
        """Register a handler for an element type. Handlers need a ``detect(text)`` method."""
        if not callable(getattr(handler, "detect", None)):
            raise TypeError(f"Handler for {element_type} must provide a detect(text) method")
        self._handlers[element_type] = handler

    def get(self, element_type: ContentElementType) -> Optional[Any]:
        """Get handler for an element type."""
        return self._handlers.get(element_type)

    def unregister(self, element_type: ContentElementType):
        """Remove handler for an element type."""
        self._handlers.pop(element_type, None)

    def get_supported_types(self) -> List[ContentElementType]:
        """Get list of supported element types."""
        return list(self._handlers.keys())
