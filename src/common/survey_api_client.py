"""
Client for the external NPS survey-intake API.

Authentication is a username/password form post to /token that returns a
short-lived bearer token. Tokens are cached per Lambda container until
shortly before they expire.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

import requests

from common.config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_TOKEN_TTL
from common.exceptions import AuthException, SurveyApiException, UpstreamException

logger = logging.getLogger(__name__)

TOKEN_PATH = "/token"
SURVEY_PATH = "/encuesta"

# Refresh this many seconds before the token's stated expiry
TOKEN_EXPIRY_SKEW = 30


class TokenCache:
    """In-memory bearer token cache keyed by (base_url, username)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[Tuple[str, str], Tuple[str, float]] = {}

    def get(self, key: Tuple[str, str]) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        token, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return token

    def put(self, key: Tuple[str, str], token: str, ttl_seconds: float) -> None:
        lifetime = max(ttl_seconds - TOKEN_EXPIRY_SKEW, 0)
        if lifetime <= 0:
            return
        self._entries[key] = (token, self._clock() + lifetime)

    def invalidate(self, key: Tuple[str, str]) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


# Shared across invocations in a warm container
token_cache = TokenCache()


class SurveyApiClient:
    """
    Client for the survey-intake API.
    Handles token retrieval and survey submission.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        token_ttl: int = DEFAULT_TOKEN_TTL,
        cache: Optional[TokenCache] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.token_ttl = token_ttl
        self.cache = cache if cache is not None else token_cache
        self.session = requests.Session()

    @property
    def _cache_key(self) -> Tuple[str, str]:
        return (self.base_url, self.username)

    def obtain_token(self) -> str:
        """
        Return a bearer token, from the cache when still valid.

        Raises:
            AuthException: If the token endpoint fails or returns no access_token
        """
        cached = self.cache.get(self._cache_key)
        if cached:
            logger.debug("Using cached survey API token")
            return cached

        url = f"{self.base_url}{TOKEN_PATH}"
        try:
            response = self.session.post(
                url,
                data={"username": self.username, "password": self.password},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            raise AuthException(
                f"Survey API token request failed with status {response.status_code}",
                details={"status": response.status_code, "body": response.text},
            ) from e
        except requests.RequestException as e:
            raise AuthException(f"Survey API token request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthException(
                "Survey API token response did not include an access_token",
                details={"body": data or response.text},
            )

        ttl = data.get("expires_in")
        if ttl is None:
            ttl = self.token_ttl
        try:
            ttl = float(ttl)
        except (TypeError, ValueError):
            ttl = float(self.token_ttl)

        self.cache.put(self._cache_key, token, ttl)
        logger.info("Obtained survey API token (valid for %ss)", int(ttl))
        return token

    def submit_survey(self, payload: dict, token: str) -> dict:
        """
        Post a composed survey payload.

        Returns:
            The parsed JSON acknowledgement ({"raw": text} if not JSON)

        Raises:
            SurveyApiException: If the API answers with an error status
            UpstreamException: On transport failures
        """
        url = f"{self.base_url}{SURVEY_PATH}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamException(f"Survey API request failed: {e}") from e

        if response.status_code == 401:
            # Token was revoked or expired early; the next request re-authenticates
            self.cache.invalidate(self._cache_key)

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if not response.ok:
            raise SurveyApiException(
                f"Survey API error {response.status_code}",
                status=response.status_code,
                body=body,
            )

        logger.info("Survey %s accepted by survey API", payload.get("idnps"))
        return body

    def close(self):
        """Close the HTTP session."""
        self.session.close()
