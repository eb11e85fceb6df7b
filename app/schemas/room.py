from typing import List, Optional

from pydantic import BaseModel

from app.models.enums import RoomStatus


class RoomTypeOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    base_price: float
    capacity: int
    bed_type: Optional[str] = None
    amenities: Optional[List[str]] = None

    model_config = {"from_attributes": True}


class RoomOut(BaseModel):
    id: int
    room_number: str
    floor: int
    status: RoomStatus
    room_type: RoomTypeOut

    model_config = {"from_attributes": True}
