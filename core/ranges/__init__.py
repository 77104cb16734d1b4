# rangeblock/core/ranges/__init__.py
from .parser import parse_document
from .selector import matches
from .snapshot import Snapshot, build_snapshot, parse_cidr
from .table import RangeTable, parse_ip
from .fetcher import RangeFetcher, FetchResult, NotModified
from .refresher import RangeRefresher, RefreshState
from .middleware import (
    RangeBlockMiddleware,
    BlockConfirmer,
    AlwaysBlock,
    FunctionConfirmer,
    ResponseSink,
    get_client_ip,
)
from .blocker import RangeBlocker

__all__ = [
    "parse_document",
    "matches",
    "Snapshot",
    "build_snapshot",
    "parse_cidr",
    "RangeTable",
    "parse_ip",
    "RangeFetcher",
    "FetchResult",
    "NotModified",
    "RangeRefresher",
    "RefreshState",
    "RangeBlockMiddleware",
    "BlockConfirmer",
    "AlwaysBlock",
    "FunctionConfirmer",
    "ResponseSink",
    "get_client_ip",
    "RangeBlocker",
]
