"""Credentials and identity for authenticated GitHub calls.

A credential is the OAuth access token obtained by the boundary layer plus
the identity it was issued for. The core never stores it beyond one request.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a credential is missing or malformed."""


@dataclass(frozen=True)
class Identity:
    """The authenticated user's login and email, used to attribute commits."""

    login: str | None
    email: str | None = None

    @classmethod
    def from_user(cls, user: dict[str, Any]) -> "Identity":
        """Build an identity from a ``GET /user`` payload.

        Args:
            user: Decoded user document.

        Returns:
            Identity with login and (possibly private, hence None) email.
        """
        return cls(login=user.get("login"), email=user.get("email"))


class Credential:
    """GitHub access token bound to the identity it authenticates.

    Token prefix formats:
    - gho_: OAuth access token (the normal case here)
    - ghp_: Personal access token (classic), accepted for CLI use
    - ghu_ / ghs_: GitHub App user-to-server / server-to-server tokens
    - Classic tokens: 40 character hex string (no prefix)
    """

    VALID_PREFIXES = ("gho_", "ghp_", "ghu_", "ghs_", "github_pat_")

    CLASSIC_TOKEN_PATTERN = re.compile(r"^[a-f0-9]{40}$")

    def __init__(self, token: str | None, identity: Identity | None = None) -> None:
        """Initialize credential.

        Args:
            token: Access token.
            identity: Identity the token belongs to, if already known.

        Raises:
            AuthenticationError: If token is missing or invalid.
        """
        if not token:
            raise AuthenticationError("Not authenticated")

        self._token = token
        self.identity = identity
        self._validate_token()

    def _validate_token(self) -> None:
        token = self._token

        has_valid_prefix = any(token.startswith(prefix) for prefix in self.VALID_PREFIXES)
        is_classic = bool(self.CLASSIC_TOKEN_PATTERN.match(token))

        if not has_valid_prefix and not is_classic:
            raise AuthenticationError(
                f"Invalid token format. Expected prefix {self.VALID_PREFIXES} "
                "or 40-character hex string (classic token)"
            )

        if has_valid_prefix and len(token) < 20:
            raise AuthenticationError("Token appears too short to be valid")

    @property
    def token(self) -> str:
        return self._token

    def get_authorization_header(self) -> dict[str, str]:
        """Get the Authorization header for API requests.

        Returns:
            Dictionary with Authorization header.
        """
        return {"Authorization": f"token {self._token}"}

    def __repr__(self) -> str:
        login = self.identity.login if self.identity else None
        return f"Credential(login={login!r})"
