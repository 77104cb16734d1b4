# api/dependencies.py
from fastapi import Request

from core.ranges.blocker import RangeBlocker
from utils.errors import ErrorCode
from utils.exceptions import APIError

# --- Service Getters ---
def get_range_blocker(request: Request) -> RangeBlocker:
    blocker = getattr(request.app.state, 'range_blocker', None)
    if blocker is None:
        raise APIError(error=ErrorCode.RANGE_BLOCKER_NOT_READY)
    return blocker
