# rangeblock/schemas/__init__.py
from .common import Message, UnifiedAPIResponse
from .ranges import (
    PrefixEntry,
    RangeDocument,
    FilterSelector,
    BlockerSettings,
    RefreshStatus,
    DEFAULT_SOURCE_URL,
)
__all__ = [
    "Message",
    "UnifiedAPIResponse",
    "PrefixEntry",
    "RangeDocument",
    "FilterSelector",
    "BlockerSettings",
    "RefreshStatus",
    "DEFAULT_SOURCE_URL",
]
