# rangeblock/api/internal/ranges.py
import logging

from fastapi import APIRouter, Depends

from core.ranges.blocker import RangeBlocker
from schemas.common import UnifiedAPIResponse
from schemas.ranges import RefreshStatus
from api.dependencies import get_range_blocker


router = APIRouter()

logger = logging.getLogger(f"rangeblock.{__name__}")


@router.get(
        "/status",
        response_model=UnifiedAPIResponse[RefreshStatus],
        response_model_exclude_none=True,
        summary="Range Refresh Status"
)
async def get_range_status(
    blocker: RangeBlocker = Depends(get_range_blocker)
):
    """
    Reports the refresh loop's state and the size and origin of the current range table.
    A growing failure count with a stale last success means the upstream list is unreachable.
    """
    status = blocker.status()
    failing = status.last_failure_at is not None and (
        status.last_success_at is None or status.last_failure_at > status.last_success_at
    )
    if failing:
        message = f"Last refresh error: {status.last_error}"
    else:
        message = f"Tracking {status.range_count} ranges."
    return UnifiedAPIResponse(success=True, message=message, data=status)
