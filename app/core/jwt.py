from datetime import datetime, timedelta

from jose import jwt

from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET
from app.models.enums import UserRole


# -------- CREATE TOKEN --------
def create_access_token(user_id: int, role: UserRole, expires_delta: int | None = None):
    """Sign a bearer token for a user from the external directory"""
    expire = datetime.utcnow() + timedelta(
        minutes=expires_delta if expires_delta else ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "exp": expire,
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)
