import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.models import Booking, Installer, User
from app.schemas.schemas import TokenData

logger = logging.getLogger(__name__)

# Tokens are issued by the external auth service; this app only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/token")

ROLE_CUSTOMER = "customer"
ROLE_INSTALLER = "installer"
ROLE_ADMIN = "admin"


@dataclass
class Actor:
    """The authenticated caller of a request"""
    id: int
    role: str
    email: Optional[str]
    record: Union[User, Installer]

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create a JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> TokenData:
    """Decode a bearer token into its claims, raising 401 on any problem"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        role = payload.get("role")
        if subject is None or role not in (ROLE_CUSTOMER, ROLE_INSTALLER, ROLE_ADMIN):
            raise credentials_exception
        return TokenData(actor_id=int(subject), role=role)
    except (JWTError, ValueError) as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise credentials_exception


async def get_current_actor(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Actor:
    """Resolve the bearer token to a customer, installer or admin"""
    token_data = decode_token(token)
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token_data.role == ROLE_INSTALLER:
        installer = db.query(Installer).filter(Installer.id == token_data.actor_id).first()
        if installer is None:
            raise credentials_exception
        return Actor(id=installer.id, role=ROLE_INSTALLER, email=installer.email, record=installer)

    user = db.query(User).filter(User.id == token_data.actor_id).first()
    if user is None:
        raise credentials_exception
    # An admin claim must be backed by the stored flag
    if token_data.role == ROLE_ADMIN and user.is_admin != 1:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return Actor(id=user.id, role=token_data.role, email=user.email, record=user)


async def get_current_admin(
    actor: Actor = Depends(get_current_actor)
) -> Actor:
    """Ensure the current actor is an admin"""
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return actor


async def get_current_installer(
    actor: Actor = Depends(get_current_actor)
) -> Actor:
    """Ensure the current actor is an installer"""
    if actor.role != ROLE_INSTALLER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Installer access required"
        )
    return actor


def is_booking_party(actor: Actor, booking: Booking) -> bool:
    """True if the actor is the booking's customer or assigned installer"""
    if actor.role == ROLE_CUSTOMER:
        return booking.customer_id == actor.id
    if actor.role == ROLE_INSTALLER:
        return booking.installer_id is not None and booking.installer_id == actor.id
    return False


def require_booking_party(actor: Actor, booking: Booking, allow_admin: bool = False):
    """Raise 403 unless the actor takes part in the booking"""
    if allow_admin and actor.is_admin:
        return
    if not is_booking_party(actor, booking):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a party to this booking"
        )
