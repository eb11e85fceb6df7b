from sqlalchemy import Column, Integer, String, Numeric, JSON, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import RoomStatus


class RoomType(Base):
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String)

    # Pricing reference; snapshotted onto BookingRoom at booking time
    base_price = Column(Numeric(14, 2), nullable=False)
    capacity = Column(Integer, nullable=False, default=2)
    bed_type = Column(String, nullable=False, default="DOUBLE")
    amenities = Column(JSON, nullable=False, default=list)

    rooms = relationship("Room", back_populates="room_type")


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String, unique=True, nullable=False, index=True)
    floor = Column(Integer, nullable=False, default=1)
    status = Column(Enum(RoomStatus), nullable=False, default=RoomStatus.AVAILABLE)

    type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)

    room_type = relationship("RoomType", back_populates="rooms")
    booking_rooms = relationship("BookingRoom", back_populates="room")
