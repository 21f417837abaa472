# spendbook/core/auth.py
"""
Session token verification against the external identity provider.

The provider signs short-lived RS256 session tokens. They are verified either
with a configured PEM public key (no network) or with the provider's JWKS
endpoint, and the ``sub`` claim becomes the caller's identity.
"""

import logging
from typing import List, Optional

import jwt

from .config import Settings
from .exceptions import Unauthorized

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]


class TokenVerifier:
    """Resolves a session token to an owner identity."""

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        public_key: Optional[str] = None,
        issuer: Optional[str] = None,
        authorized_parties: Optional[List[str]] = None,
        leeway: int = 0,
    ):
        if not jwks_url and not public_key:
            logger.warning("No JWKS URL or public key configured; every token will be rejected")
        self.public_key = public_key
        self.jwks_client = jwt.PyJWKClient(jwks_url) if jwks_url and not public_key else None
        self.issuer = issuer
        self.authorized_parties = authorized_parties or []
        self.leeway = leeway

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            jwks_url=settings.AUTH_JWKS_URL,
            public_key=settings.AUTH_JWT_KEY,
            issuer=settings.AUTH_ISSUER,
            authorized_parties=settings.authorized_parties,
            leeway=settings.AUTH_LEEWAY_SECONDS,
        )

    def _signing_key(self, token: str):
        if self.public_key:
            return self.public_key
        if self.jwks_client:
            return self.jwks_client.get_signing_key_from_jwt(token).key
        raise Unauthorized()

    def verify(self, token: str) -> str:
        """Return the ``sub`` claim of a valid token or raise ``Unauthorized``.

        Blocking: the JWKS lookup may hit the network, so call it from a
        worker thread.
        """
        if not token:
            raise Unauthorized()

        try:
            payload = jwt.decode(
                token,
                self._signing_key(token),
                algorithms=ALGORITHMS,
                issuer=self.issuer,
                leeway=self.leeway,
                options={"require": ["exp", "sub"], "verify_aud": False},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired session token")
            raise Unauthorized()
        except jwt.PyJWKClientError as e:
            logger.warning(f"Could not fetch signing key: {str(e)}")
            raise Unauthorized()
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected session token: {str(e)}")
            raise Unauthorized()

        if self.authorized_parties:
            azp = payload.get("azp")
            if azp and azp not in self.authorized_parties:
                logger.debug(f"Rejected session token from unauthorized party {azp}")
                raise Unauthorized()

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise Unauthorized()
        return user_id
