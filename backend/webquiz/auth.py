"""Authentication helpers and FastAPI security dependencies.

Every protected request carries HTTP Basic credentials which are checked
against the stored password hash. Nothing is remembered between
requests: there is no token, session or cookie.

`get_current_user` returns the `User` model instance bound to the
request's database session; `require_admin` additionally demands the
`ADMIN` role.
"""

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlmodel import Session
from .database import get_session
from . import models, services

basic_scheme = HTTPBasic(realm="webquiz")

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": 'Basic realm="webquiz"'}


def get_current_user(
    credentials: HTTPBasicCredentials = Security(basic_scheme),
    db: Session = Depends(get_session),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    Raises HTTPException(401) when the username is unknown or the
    password does not match.
    """
    users = services.UserService(db)
    try:
        user = users.load_by_username(credentials.username)
    except services.UserNotFound:
        raise HTTPException(status_code=401, detail='invalid credentials', headers=_UNAUTHORIZED_HEADERS)
    if not users.verify_password(user, credentials.password):
        raise HTTPException(status_code=401, detail='invalid credentials', headers=_UNAUTHORIZED_HEADERS)
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    """Dependency guarding management endpoints."""
    if not user.has_role(models.RoleName.ADMIN):
        raise HTTPException(status_code=403, detail='admin role required')
    return user
