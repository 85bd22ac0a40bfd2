"""
==============================================================================
Common Schemas Module
==============================================================================

Shared response schemas used across API endpoints.

==============================================================================
"""

from typing import List
from pydantic import BaseModel, Field


class FormatsResponse(BaseModel):
    """Format tags the decoder supports."""
    success: bool = Field(default=True)
    formats: List[str]


class SessionStateResponse(BaseModel):
    """Camera session status."""
    success: bool = Field(default=True)
    active: bool
    paused: bool
    accepted_count: int = Field(ge=0)
