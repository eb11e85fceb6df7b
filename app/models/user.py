from sqlalchemy import Column, Integer, String, Boolean, Enum
from app.db.session import Base
from app.models.enums import UserRole


class User(Base):
    """Guest and staff identities; owned by the user directory, read here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CUSTOMER)
    is_active = Column(Boolean, nullable=False, default=True)
