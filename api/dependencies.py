"""API Dependencies - Authentication and engine wiring"""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB
from domain.enums import Role
from domain.value_objects import Actor
from infrastructure.container import Container
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

# Mock user store, one account per role
# In production, this would be a database call
_fake_users_db = {
    "admin": {
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "plain_password": "admin123",  # Will be hashed on first access
        "role": Role.ADMIN,
        "hotel_ids": [],
    },
    "owner": {
        "user_id": "owner-1",
        "username": "owner",
        "full_name": "Hotel Owner",
        "plain_password": "owner123",
        "role": Role.OWNER,
        "hotel_ids": ["grand-hotel"],
    },
    "frontdesk": {
        "user_id": "staff-1",
        "username": "frontdesk",
        "full_name": "Front Desk",
        "plain_password": "staff123",
        "role": Role.STAFF,
        "hotel_ids": ["grand-hotel"],
    },
    "guest": {
        "user_id": "guest-1",
        "username": "guest",
        "full_name": "Guest User",
        "email": "guest@example.com",
        "plain_password": "guest123",
        "role": Role.GUEST,
        "hotel_ids": [],
    },
    "payments": {
        "user_id": "payments",
        "username": "payments",
        "full_name": "Payment Gateway",
        "plain_password": "payments123",
        "role": Role.SYSTEM,
        "hotel_ids": [],
    },
}

# Public alias for backwards compatibility
fake_users_db = _fake_users_db

# Cache for hashed passwords
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str) -> Optional[UserInDB]:
    if username in db:
        user_dict = db[username].copy()
        # Replace plain_password with hashed_password
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


def _user_from_token(token: str) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    return _user_from_token(token)


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_actor(user: User = Depends(get_current_active_user)) -> Actor:
    return user.as_actor()


async def get_optional_actor(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Actor:
    """Signed-in user's actor, or an anonymous guest"""
    if token is None:
        return Actor(role=Role.GUEST)
    user = await get_current_active_user(_user_from_token(token))
    return user.as_actor()


def get_container(request: Request) -> Container:
    return request.app.state.container
