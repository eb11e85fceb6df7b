from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from app.core.dependencies import get_db
from app.core.logging_config import get_logger
from app.core.redis import ROOM_CATALOG_KEY, get_cache, set_cache
from app.models.room import Room
from app.schemas.room import RoomOut
from app.services.availability import find_available_rooms

router = APIRouter(prefix="/rooms", tags=["Rooms"])
logger = get_logger()

ROOM_CATALOG_TTL = 300


# ---------------------------------------------------------------------
# ROOM CATALOG (cached)
# ---------------------------------------------------------------------
@router.get("", response_model=List[RoomOut])
def list_rooms(db: Session = Depends(get_db)):
    cached = get_cache(ROOM_CATALOG_KEY)
    if cached is not None:
        return cached

    rooms = (
        db.query(Room)
        .options(joinedload(Room.room_type))
        .order_by(Room.room_number)
        .all()
    )
    payload = [RoomOut.model_validate(r).model_dump(mode="json") for r in rooms]
    set_cache(ROOM_CATALOG_KEY, payload, ttl=ROOM_CATALOG_TTL)
    return payload


# ---------------------------------------------------------------------
# PRE-FLIGHT SEARCH (never cached)
# ---------------------------------------------------------------------
@router.get("/availability", response_model=List[RoomOut])
def search_available_rooms(
    check_in: date,
    check_out: date,
    room_type_id: Optional[int] = None,
    guests: Optional[int] = None,
    db: Session = Depends(get_db),
):
    if check_out <= check_in:
        raise HTTPException(status_code=400, detail="Check-out date must be after check-in date")

    rooms = find_available_rooms(db, check_in, check_out, room_type_id=room_type_id, guests=guests)
    logger.info(f"Availability search | {check_in}->{check_out} | type={room_type_id} | found={len(rooms)}")
    return rooms
