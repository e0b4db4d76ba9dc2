"""Helpers for validating the access tokens issued by the auth service."""

from datetime import datetime, timedelta

from jose import JWTError, jwt

from tuition_api.config import get_settings

ALGORITHM = "HS256"


# ---- JWT ----
settings = get_settings()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(days=7))
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc
