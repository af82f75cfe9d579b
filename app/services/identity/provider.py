"""
Identity collaborator: turns an external sign-in assertion into a verified
(email, display_name) pair. The core never authenticates on its own.

Providers:
- google: verifies a Google ID token through the tokeninfo endpoint (httpx,
  guarded by the "identity" circuit breaker).
- dev: trusts "email" or "email|Display Name" verbatim. Local environment only.
"""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
import pybreaker

from app.core.config import settings
from app.services.circuit_breaker import get_circuit_breaker
from app.utils.metrics import identity_request_duration_seconds, identity_requests_total

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


@dataclass(frozen=True)
class VerifiedIdentity:
    email: str
    display_name: str | None = None


class IdentityError(Exception):
    """Assertion rejected (bad token, unverified email, wrong audience)."""


class IdentityUnavailableError(IdentityError):
    """Identity provider could not be reached."""


class IdentityProvider(ABC):
    @abstractmethod
    def verify(self, assertion: str) -> VerifiedIdentity:
        raise NotImplementedError


class GoogleIdentityProvider(IdentityProvider):
    def __init__(
        self,
        client: httpx.Client | None = None,
        breaker: pybreaker.CircuitBreaker | None = None,
    ) -> None:
        self._client = client
        self._breaker = breaker
        self.client_id = settings.google_client_id
        self.tokeninfo_url = settings.google_tokeninfo_url

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.Client(timeout=settings.http_client_timeout)
        return self._client

    @property
    def breaker(self) -> pybreaker.CircuitBreaker:
        if self._breaker is None:
            self._breaker = get_circuit_breaker("identity")
        return self._breaker

    def _fetch_tokeninfo(self, id_token: str) -> httpx.Response:
        resp = self.client.get(self.tokeninfo_url, params={"id_token": id_token})
        if resp.status_code >= 500:
            # 5xx counts against the breaker; 4xx means a bad token, not an outage
            resp.raise_for_status()
        return resp

    def verify(self, assertion: str) -> VerifiedIdentity:
        if not assertion:
            raise IdentityError("Missing identity token")
        start = time.time()
        try:
            resp = self.breaker.call(self._fetch_tokeninfo, assertion)
        except pybreaker.CircuitBreakerError as e:
            identity_requests_total.labels(status="breaker_open").inc()
            raise IdentityUnavailableError("Identity provider temporarily unavailable") from e
        except httpx.HTTPError as e:
            identity_requests_total.labels(status="error").inc()
            logger.warning("identity_request_failed", extra={"error": str(e)})
            raise IdentityUnavailableError("Identity provider request failed") from e
        finally:
            identity_request_duration_seconds.observe(time.time() - start)

        if resp.status_code != 200:
            identity_requests_total.labels(status="rejected").inc()
            raise IdentityError("Identity token rejected")

        claims = resp.json()
        if not self.client_id or claims.get("aud") != self.client_id:
            identity_requests_total.labels(status="rejected").inc()
            raise IdentityError("Identity token audience mismatch")
        if claims.get("iss") not in GOOGLE_ISSUERS:
            identity_requests_total.labels(status="rejected").inc()
            raise IdentityError("Identity token issuer mismatch")
        if str(claims.get("email_verified", "")).lower() != "true" or not claims.get("email"):
            identity_requests_total.labels(status="rejected").inc()
            raise IdentityError("Email is not verified")

        identity_requests_total.labels(status="ok").inc()
        return VerifiedIdentity(
            email=claims["email"].strip().lower(),
            display_name=claims.get("name"),
        )


class DevIdentityProvider(IdentityProvider):
    def verify(self, assertion: str) -> VerifiedIdentity:
        email, _, name = (assertion or "").partition("|")
        email = email.strip().lower()
        if "@" not in email:
            raise IdentityError("Expected 'email' or 'email|Display Name'")
        return VerifiedIdentity(email=email, display_name=name.strip() or None)


PROVIDERS: dict[str, type[IdentityProvider]] = {
    "google": GoogleIdentityProvider,
    "dev": DevIdentityProvider,
}


def create_identity_provider(name: str) -> IdentityProvider:
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise ValueError(f"Unknown identity provider: {name}. Available: {', '.join(PROVIDERS)}")
    if provider_cls is DevIdentityProvider and settings.app_env != "local":
        raise ValueError("dev identity provider is only allowed when app_env=local")
    if provider_cls is GoogleIdentityProvider and not settings.google_client_id:
        raise ValueError("google identity provider requires google_client_id")
    return provider_cls()


_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency; one provider per process."""
    global _provider
    if _provider is None:
        _provider = create_identity_provider(settings.identity_provider)
        logger.info("identity_provider_ready", extra={"source": settings.identity_provider})
    return _provider
