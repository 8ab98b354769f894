"""User-related Pydantic models"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class User(BaseModel):
    """Player account; the caller supplies a trusted id"""
    id: int
    username: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
