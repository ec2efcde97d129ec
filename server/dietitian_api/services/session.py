"""Per-request session context.

The external auth service writes bearer tokens into ``auth_sessions``.
Each request resolves its token into a SessionContext that handlers
receive as an explicit dependency.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..database import DatabaseManager, get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Highest privilege first; a user holding several roles acts with the first
ROLE_PRIORITY = ("admin", "dietitian", "patient")


@dataclass(frozen=True)
class SessionContext:
    """The signed-in user for one request."""

    user_id: str
    role: str
    full_name: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _expired(expires_at: Optional[str]) -> bool:
    if not expires_at:
        return False
    expiry = datetime.fromisoformat(expires_at)
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry <= datetime.now(timezone.utc)


def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: DatabaseManager = Depends(get_db),
) -> SessionContext:
    """Resolve the bearer token into a SessionContext or reject with 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    with db.get_conn() as conn:
        row = conn.execute(
            """
            SELECT s.user_id, s.expires_at, p.full_name, p.email
            FROM auth_sessions s
            JOIN profiles p ON p.id = s.user_id
            WHERE s.token = ?
            """,
            (credentials.credentials,),
        ).fetchone()
        roles = {
            r["role"]
            for r in conn.execute(
                "SELECT role FROM user_roles WHERE user_id = ?",
                (row["user_id"],) if row else ("",),
            ).fetchall()
        }

    if row is None or _expired(row["expires_at"]):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    role = next((r for r in ROLE_PRIORITY if r in roles), None)
    if role is None:
        logger.warning(f"User {row['user_id']} has no role assigned")
        raise HTTPException(status_code=403, detail="No role assigned to this account")

    return SessionContext(
        user_id=row["user_id"],
        role=role,
        full_name=row["full_name"],
        email=row["email"],
    )


def require_roles(*allowed: str):
    """Dependency factory that admits only the given roles."""

    def _check(session: SessionContext = Depends(get_session_context)) -> SessionContext:
        if session.role not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"This action requires one of the roles: {', '.join(allowed)}",
            )
        return session

    return _check
