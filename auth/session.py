"""Session token validation.

Sessions are stored in Valkey with TTL matching session expiry. They are
written by the login front end; this service reads, extends and revokes
them.
"""

from datetime import timedelta

from pydantic import ValidationError

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Session
from auth.exceptions import InvalidTokenError, SessionExpiredError
from utils.timezone import now_utc, parse_iso


class SessionManager:
    """Session token validation.

    Stored value layout (JSON under "session:<token>"):
        {"owner_id", "created_at", "expires_at", "last_activity_at"}
    """

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, token: str) -> str:
        """Generate Valkey key for session token."""
        return f"{self.KEY_PREFIX}{token}"

    def validate_session(self, token: str) -> Session:
        """Validate session token and return session.

        Raises SessionExpiredError if token unknown or expired, and
        InvalidTokenError if the stored record is unreadable.
        Extends session if within threshold (if configured).
        """
        data = self._valkey.get_json(self._key(token))

        if data is None:
            raise SessionExpiredError("Session not found or expired")

        try:
            session = Session(
                token=token,
                owner_id=data["owner_id"],
                created_at=parse_iso(data["created_at"]),
                expires_at=parse_iso(data["expires_at"]),
                last_activity_at=parse_iso(data["last_activity_at"]),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise InvalidTokenError("Malformed session record") from e

        now = now_utc()

        # Valkey TTL should already have dropped it
        if now > session.expires_at:
            self._valkey.delete(self._key(token))
            raise SessionExpiredError("Session expired")

        remaining = session.expires_at - now
        threshold = timedelta(hours=self._config.session_extend_threshold_hours)
        if self._config.session_extend_on_activity and remaining < threshold:
            session = self._extend_session(session)

        return session

    def _extend_session(self, session: Session) -> Session:
        """Extend session expiry and update last_activity_at."""
        now = now_utc()
        new_expires = now + timedelta(hours=self._config.session_expiry_hours)

        updated = session.model_copy(update={
            "expires_at": new_expires,
            "last_activity_at": now,
        })

        self._valkey.set_json(
            self._key(session.token),
            {
                "owner_id": updated.owner_id,
                "created_at": updated.created_at.isoformat(),
                "expires_at": updated.expires_at.isoformat(),
                "last_activity_at": updated.last_activity_at.isoformat(),
            },
            expire_seconds=self._config.session_expiry_hours * 3600,
        )

        return updated

    def revoke_session(self, token: str) -> None:
        """Revoke session (logout).

        Safe to call with nonexistent token.
        """
        self._valkey.delete(self._key(token))
