"""Common response wrapper."""

from typing import Any, Optional
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Generic API response."""

    success: bool = True
    message: str
    data: Optional[Any] = None
    count: Optional[int] = None
    correlation_id: Optional[str] = None
