"""
Client-side session holder.

    anonymous --restore()/login()--> verifying --ok--> authenticated
                                               --fail--> anonymous

The token itself never leaves the injected ``TokenStore`` and is never logged.
"""
import enum
import logging
from typing import Optional

from client.api import ApiError, ApiService

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    ANONYMOUS = "anonymous"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"


class AuthSession:
    def __init__(self, api: ApiService):
        self.api = api
        self.token_store = api.token_store
        self.state = SessionState.ANONYMOUS
        self.user: Optional[dict] = None
        self.error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED and self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def restore(self) -> bool:
        """Verify a previously stored token, discarding it if the server rejects it."""
        token = self.token_store.get()
        if not token:
            self.state = SessionState.ANONYMOUS
            return False

        self.state = SessionState.VERIFYING
        try:
            data = self.api.verify_token(token)
        except ApiError as e:
            logger.info("Stored session could not be verified: %s", e.message)
            self.end_session()
            return False

        self.user = data["user"]
        self.state = SessionState.AUTHENTICATED
        return True

    def login(self, email: str, password: str) -> dict:
        self.error = None
        self.state = SessionState.VERIFYING
        try:
            data = self.api.login(email, password)
        except ApiError as e:
            self.error = e.message or "Login failed. Please try again."
            self.state = SessionState.ANONYMOUS
            raise

        self.token_store.set(data["token"])
        self.user = data["user"]
        self.state = SessionState.AUTHENTICATED
        return self.user

    def logout(self) -> None:
        try:
            if self.token_store.get():
                self.api.logout()
        except ApiError as e:
            logger.warning("Logout request failed: %s", e.message)
        finally:
            self.end_session()

    def end_session(self) -> None:
        self.token_store.clear()
        self.user = None
        self.error = None
        self.state = SessionState.ANONYMOUS

    def clear_error(self) -> None:
        self.error = None
