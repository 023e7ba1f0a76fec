"""OAuth access tokens for the Firestore REST API.

A ``TokenProvider`` is injected into ``RestFirestoreDatabase``; it owns the
token lifecycle. ``ServiceAccountTokenProvider`` implements the OAuth 2.0
JWT bearer grant: it signs an RS256 assertion with the service account's
private key and exchanges it for an access token, caching the result until
shortly before it expires.
"""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import httpx
import jwt

from bcup.exceptions import ConfigurationError, UpstreamFailureError
from bcup.logger import Logger, get_logger

DATASTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600


@dataclass
class AccessToken:
    """Bearer token and its absolute expiry (epoch seconds)"""

    value: str
    expires_at: float

    def is_fresh(self, now: float, margin: float) -> bool:
        return now < self.expires_at - margin


class TokenProvider(ABC):
    """Source of bearer tokens for REST calls"""

    @abstractmethod
    def get_token(self) -> str:
        """Return a currently valid access token."""
        pass

    def invalidate(self) -> None:
        """Forget any cached token (e.g. after a 401)."""
        pass


class StaticTokenProvider(TokenProvider):
    """Always returns the same pre-minted token."""

    def __init__(self, token: str):
        self._token = token

    def get_token(self) -> str:
        return self._token


class ServiceAccountTokenProvider(TokenProvider):
    """Exchange signed JWT assertions for OAuth access tokens.

    Example:
        provider = ServiceAccountTokenProvider.from_file("service-account.json")
        headers = {"Authorization": f"Bearer {provider.get_token()}"}
    """

    def __init__(
        self,
        service_account: Mapping[str, Any],
        scopes: Sequence[str] = (DATASTORE_SCOPE,),
        http_client: Optional[httpx.Client] = None,
        refresh_margin: float = 60.0,
        clock: Callable[[], float] = time.time,
        logger: Optional[Logger] = None,
    ):
        """
        Args:
            service_account: Parsed service account key (client_email, private_key, ...)
            scopes: OAuth scopes to request
            http_client: httpx client used for the token exchange
            refresh_margin: Seconds before expiry at which a token is renewed
            clock: Time source, injectable for tests
            logger: Optional logger instance
        """
        missing = [k for k in ("client_email", "private_key") if not service_account.get(k)]
        if missing:
            raise ConfigurationError(
                "Service account key is missing required fields",
                details={"missing": missing},
            )
        self._client_email = service_account["client_email"]
        self._private_key = service_account["private_key"]
        self._key_id = service_account.get("private_key_id")
        self._token_uri = service_account.get("token_uri") or DEFAULT_TOKEN_URI
        self._scopes = " ".join(scopes)
        self._http = http_client or httpx.Client(timeout=30.0)
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._logger = logger or get_logger("bcup-tokens")
        self._cached: Optional[AccessToken] = None
        self._lock = threading.Lock()

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> "ServiceAccountTokenProvider":
        """Load a service account JSON key file."""
        key_path = Path(path)
        try:
            info = json.loads(key_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read service account key: {e}", details={"path": str(key_path)}
            ) from e
        return cls(info, **kwargs)

    @property
    def client_email(self) -> str:
        return self._client_email

    def build_assertion(self, now: float) -> str:
        """Sign the JWT assertion sent to the token endpoint."""
        issued_at = int(now)
        claims: Dict[str, Any] = {
            "iss": self._client_email,
            "scope": self._scopes,
            "aud": self._token_uri,
            "iat": issued_at,
            "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
        }
        headers = {"kid": self._key_id} if self._key_id else None
        return jwt.encode(claims, self._private_key, algorithm="RS256", headers=headers)

    def _exchange(self, now: float) -> AccessToken:
        try:
            response = self._http.post(
                self._token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": self.build_assertion(now)},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Token exchange failed", error=str(e))
            raise UpstreamFailureError(f"OAuth token exchange failed: {e}", cause=e) from e

        if "access_token" not in payload:
            raise UpstreamFailureError("OAuth token response has no access_token")

        expires_in = float(payload.get("expires_in", ASSERTION_LIFETIME_SECONDS))
        self._logger.debug("Access token issued", expires_in=expires_in)
        return AccessToken(value=payload["access_token"], expires_at=now + expires_in)

    def get_token(self) -> str:
        with self._lock:
            now = self._clock()
            if self._cached is None or not self._cached.is_fresh(now, self._refresh_margin):
                self._cached = self._exchange(now)
            return self._cached.value

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
