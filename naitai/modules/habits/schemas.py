from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class HabitCreate(BaseModel):
    # Validated by the route so a missing name yields the API's own 400 body
    name: Optional[str] = None
    description: Optional[str] = None


class HabitResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    completed: bool = False
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HabitEnvelope(BaseModel):
    data: HabitResponse


class HabitListEnvelope(BaseModel):
    data: List[HabitResponse]


class HabitDeleted(BaseModel):
    id: str
    success: bool = True


class HabitDeletedEnvelope(BaseModel):
    data: HabitDeleted
