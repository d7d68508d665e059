"""
API Models Package
"""
from .base import ErrorResponse, MessageResponse
from .search import SmartSearchRequest, SmartSearchResponse

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "SmartSearchRequest",
    "SmartSearchResponse"
]
