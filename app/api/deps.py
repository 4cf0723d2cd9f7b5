from functools import partial

from fastapi import BackgroundTasks, Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from app.core.security import decode_token, staff_roles
from app.services.image_store import ImageStore

bearer = HTTPBearer(auto_error=False)


def get_claims(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload


def require_roles(*roles: str):
    def _guard(claims: dict = Depends(get_claims)) -> dict:
        if claims.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return claims
    return _guard


require_staff = require_roles(*staff_roles())


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_notify(request: Request, background_tasks: BackgroundTasks):
    """Schedule guest emails to run after the response is sent."""
    return partial(background_tasks.add_task, request.app.state.notifier.dispatch)
