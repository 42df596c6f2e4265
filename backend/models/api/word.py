"""
Pydantic models for Words
"""

from pydantic import BaseModel, Field, field_serializer
from datetime import datetime
from typing import Optional, List


class WordResponse(BaseModel):
    """A word as rendered on the orbit"""
    id: str
    term: str
    username: str
    avatar_url: Optional[str] = None
    client_token: str
    created_at: Optional[datetime] = None
    layer_index: Optional[int] = Field(default=None, serialization_alias="layerIndex")
    slot_index: Optional[int] = Field(default=None, serialization_alias="slotIndex")
    angle: Optional[float] = None
    radius: Optional[float] = None

    model_config = {"populate_by_name": True}

    @field_serializer('created_at')
    def serialize_created_at(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None


class WordListResponse(BaseModel):
    """GET /words"""
    words: List[WordResponse]


class WordCreatedResponse(BaseModel):
    """POST /words"""
    word: WordResponse


class DeleteResponse(BaseModel):
    """DELETE /words"""
    success: bool = True


class ErrorResponse(BaseModel):
    """Single descriptive error string"""
    error: str
