"""Basic authentication for the Bitbucket API"""

import base64
from dataclasses import dataclass

from .errors import configuration_error


@dataclass(frozen=True)
class Credentials:
    """Bitbucket username and app password."""

    username: str
    app_password: str


class AuthHandler:
    """Derives the Authorization header from a set of credentials."""

    def __init__(self, credentials: Credentials):
        if not credentials.username or not credentials.app_password:
            raise configuration_error(
                "Username and app password are required for authentication"
            )
        self._credentials = credentials

    def auth_header_value(self) -> str:
        """Return the Basic Auth header value"""
        raw = f"{self._credentials.username}:{self._credentials.app_password}"
        encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        return f"Basic {encoded}"

    def headers(self) -> dict[str, str]:
        return {"Authorization": self.auth_header_value()}
