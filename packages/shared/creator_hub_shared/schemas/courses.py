from typing import Optional
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime


class CourseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    details: Optional[str] = None
    price: float = Field(default=0, ge=0)
    duration: Optional[int] = Field(
        default=None,
        ge=0,
        description="Access period in days (null or 0 = unlimited)",
    )
    recurring: bool = False
    is_active: bool = True


class CourseCreate(CourseBase):
    project_id: UUID


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    details: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    recurring: Optional[bool] = None
    is_active: Optional[bool] = None


class CourseRead(CourseBase):
    id: UUID
    project_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationRead(BaseModel):
    id: UUID
    course_id: UUID
    user_id: UUID
    name: Optional[str] = None
    user_message: str
    response: str
    message_time: datetime
    response_time: datetime

    model_config = {"from_attributes": True}
