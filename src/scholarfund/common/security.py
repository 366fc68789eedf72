"""Principal resolution, gateway key and signed session tokens."""

from dataclasses import dataclass

from fastapi import Header, HTTPException
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from scholarfund.common.config import ScholarFundSettings

SESSION_SALT = "scholarfund-session"

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"


@dataclass(frozen=True)
class Principal:
    """The acting staff member, passed explicitly into every service call."""
    id: str
    display_name: str
    role: str

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN


def _get_serializer(settings: ScholarFundSettings | None = None) -> URLSafeTimedSerializer:
    if settings is None:
        from scholarfund.common.config import get_settings
        settings = get_settings()
    return URLSafeTimedSerializer(settings.secret_key, salt=SESSION_SALT)


def create_session_token(user_id: str, settings: ScholarFundSettings | None = None) -> str:
    """Sign a session payload for a user id."""
    return _get_serializer(settings).dumps({"uid": user_id})


def verify_session_token(
    token: str, settings: ScholarFundSettings | None = None,
) -> dict | None:
    """Verify and decode a session token. Returns payload or None."""
    if settings is None:
        from scholarfund.common.config import get_settings
        settings = get_settings()
    try:
        return _get_serializer(settings).loads(token, max_age=settings.session_max_age)
    except (BadSignature, SignatureExpired):
        return None


async def require_api_key(
    x_scholarfund_api_key: str = Header(..., alias="X-Scholarfund-Api-Key"),
) -> str:
    """FastAPI dependency that validates the identity gateway key from header."""
    from scholarfund.common.config import get_settings

    settings = get_settings()
    if x_scholarfund_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_scholarfund_api_key


async def get_current_principal(
    x_scholarfund_session: str = Header(..., alias="X-Scholarfund-Session"),
) -> Principal:
    """FastAPI dependency resolving the session token to an active user."""
    payload = verify_session_token(x_scholarfund_session)
    if payload is None or "uid" not in payload:
        raise HTTPException(status_code=401, detail="Session invalid or expired")

    from scholarfund.deps import get_db, get_user_service
    svc = get_user_service()
    db = get_db()
    async with db.get_session() as session:
        principal = await svc.resolve_principal(session, payload["uid"])
    if principal is None:
        raise HTTPException(status_code=401, detail="Account inactive or removed")
    return principal
