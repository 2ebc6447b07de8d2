from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class Book(BaseModel):
    id: int
    isbn: str
    title: str
    author: str
    total_copies: int
    available_copies: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
