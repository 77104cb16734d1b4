from fastapi import status

class ErrorDetail:
    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message

class ErrorCode:
    """System error code and message definitions"""

    # Common errors
    COMMON_INTERNAL_ERROR = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "COMMON_INTERNAL_ERROR", "An unexpected internal server error occurred.")

    # Range blocker errors
    RANGE_IP_FORBIDDEN = ErrorDetail(status.HTTP_403_FORBIDDEN, "RANGE_IP_FORBIDDEN", "Forbidden")
    RANGE_BLOCKER_NOT_READY = ErrorDetail(status.HTTP_503_SERVICE_UNAVAILABLE, "RANGE_BLOCKER_NOT_READY", "Range blocker is not initialized")
