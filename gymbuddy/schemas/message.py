from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

class MessageCreate(BaseModel):
    sender_id: UUID
    message: str = Field(min_length=1, max_length=4000)

class MessageResponse(BaseModel):
    id: UUID
    match_id: UUID
    sender_id: UUID
    message: str
    read: Optional[bool] = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class MarkReadResponse(BaseModel):
    match_id: UUID
    marked: int
