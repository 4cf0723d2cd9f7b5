from datetime import datetime, timedelta, timezone

from jose import jwt

from app.core.config import settings

ALGO = "HS256"


def staff_roles() -> tuple[str, ...]:
    return tuple(r.strip() for r in settings.STAFF_ROLES.split(",") if r.strip())


def create_access_token(subject: str, role: str, expires_minutes: int | None = None) -> str:
    """Token for dashboard staff. Issued by the auth service; minted here for scripts and tests."""
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    exp = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "role": role, "type": "access", "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
