from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import logging

import jwt
from fastapi import HTTPException, Request

from coursepath.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from coursepath.models.enums import ADMIN_ROLE

logger = logging.getLogger("coursepath.security")


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    role: str = "student"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(auth_header: str) -> CurrentUser:
    if not auth_header:
        logger.warning("Authorization header missing")
        raise HTTPException(status_code=401, detail="Authorization required")
    token = auth_header.replace("Bearer ", "").replace("bearer ", "")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.PyJWTError as e:
        logger.warning(f"Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication token")
    return CurrentUser(user_id=int(user_id), role=payload.get("role") or "student")


async def get_current_user(request: Request) -> CurrentUser:
    return decode_token(request.headers.get("authorization"))


async def get_optional_user(request: Request) -> Optional[CurrentUser]:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None
    return decode_token(auth_header)
