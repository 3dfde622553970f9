import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Where the bearer token lives between runs."""

    @abstractmethod
    def get(self) -> Optional[str]: ...

    @abstractmethod
    def set(self, token: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemoryTokenStore(TokenStore):
    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore(TokenStore):
    """Keeps the token in a small JSON file readable only by the owner."""

    def __init__(self, path: str):
        self.path = path

    def get(self) -> Optional[str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f).get("token")
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

    def set(self, token: str) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({"token": token}, f)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
