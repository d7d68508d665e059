"""
Base response models
"""
from typing import Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model"""
    success: bool = Field(False, description="Request success status")
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Error details")


class MessageResponse(BaseModel):
    """Route-level error response model"""
    detail: str = Field(..., description="Error message")
