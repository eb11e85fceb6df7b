from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.core.auth_utils import decode_token
from app.core.context import RequestContext
from app.models.enums import UserRole
from app.models.user import User

security = HTTPBearer()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_request_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> RequestContext:
    payload = decode_token(credentials.credentials)

    try:
        user_id = int(payload["sub"])
        role = UserRole(payload["role"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    # The directory is authoritative for the role, not the token
    return RequestContext(user_id=user.id, role=user.role)


def require_staff(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not ctx.is_staff:
        raise HTTPException(status_code=403, detail="Staff access only")
    return ctx
