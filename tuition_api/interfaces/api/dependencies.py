"""FastAPI dependency utilities."""

from collections.abc import Mapping

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from tuition_api.domain.entities import Channel, Recipient
from tuition_api.infrastructure.channels import ChannelAdapter
from tuition_api.infrastructure.database import get_db
from tuition_api.infrastructure.repositories import UserRepository
from tuition_api.infrastructure.security import decode_access_token
from tuition_api.utils import is_valid_object_id

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_exception(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> Recipient:
    """Resolve the authenticated user for the provided token.

    Tokens are issued by the auth service; their ``sub`` claim carries the
    user id.
    """

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not is_valid_object_id(user_id):
        raise _credentials_exception()

    user = UserRepository(db).find_by_id(user_id.lower())
    if user is None:
        raise _credentials_exception("User not found")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Recipient:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_channels(request: Request) -> Mapping[Channel, ChannelAdapter]:
    """Return the channel adapters built when the application started."""

    return request.app.state.channels
