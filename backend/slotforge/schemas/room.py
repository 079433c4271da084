from enum import Enum

from pydantic import BaseModel, Field


class RoomType(str, Enum):
    classroom = "classroom"
    lab = "lab"
    auditorium = "auditorium"
    seminar = "seminar"


class RoomInput(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    room_number: str = Field(default="", max_length=100)
    building: str = Field(default="", max_length=200)
    capacity: int = Field(ge=0, le=5000)
    room_type: RoomType = RoomType.classroom
    equipment: list[str] = Field(default_factory=list)
    is_available: bool = True
