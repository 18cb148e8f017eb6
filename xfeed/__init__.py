"""
xfeed: paginated, rate-limit aware list views over the X API.
"""

from xfeed.engine import EngineState, PaginatedFetchEngine
from xfeed.pagination import PaginationState
from xfeed.rate_limit import CountdownTimer, RateLimitGate
from xfeed.result import ApiError, ApiErrorType, Err, Ok, Page

__all__ = [
    "ApiError",
    "ApiErrorType",
    "CountdownTimer",
    "EngineState",
    "Err",
    "Ok",
    "Page",
    "PaginatedFetchEngine",
    "PaginationState",
    "RateLimitGate",
]
