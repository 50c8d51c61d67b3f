"""Token freshness checks based on unverified JWT claims."""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt

from ..utils.date_utils import ensure_utc, from_timestamp, utc_now

logger = logging.getLogger(__name__)

# Refresh tokens this close to expiry
EXPIRY_BUFFER_SECONDS = 60


def decode_claims(token: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Decode the claims segment of a JWT without verifying its signature.

    The token was just issued to us over TLS by the identity provider, so only
    its claims are read here.

    Returns:
        The claims dictionary, or None if the token cannot be decoded
    """
    if not token:
        return None
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Cannot decode token claims: {e}")
        return None


def user_info_from_id_token(id_token: Optional[str]) -> Optional[dict[str, Any]]:
    """Identity claims from an id token, in the persisted ``userInfo`` layout."""
    claims = decode_claims(id_token)
    if not claims:
        return None
    return {
        "uniqueId": claims.get("oid") or claims.get("sub"),
        "displayableId": claims.get("upn") or claims.get("unique_name") or claims.get("email"),
        "givenName": claims.get("given_name"),
        "familyName": claims.get("family_name"),
        "identityProvider": claims.get("idp") or claims.get("iss"),
        "tenantId": claims.get("tid"),
    }


class TokenExpiryChecker:
    """Decides whether a cached access token is still usable."""

    def __init__(self, buffer_seconds: int = EXPIRY_BUFFER_SECONDS):
        self.buffer = timedelta(seconds=buffer_seconds)

    def get_expiry(self, token: Optional[str]) -> Optional[datetime]:
        """
        Expiry time of ``token`` from its ``exp`` claim.

        Returns:
            UTC expiry datetime, or None if the token has no readable expiry
        """
        claims = decode_claims(token)
        if not claims or claims.get("exp") is None:
            return None
        try:
            return from_timestamp(claims["exp"])
        except (TypeError, ValueError, OverflowError):
            return None

    def needs_refresh(self, token: Optional[str], now: Optional[datetime] = None) -> bool:
        """True when the token expires within the buffer or cannot be decoded."""
        expiry = self.get_expiry(token)
        if expiry is None:
            return True
        now = ensure_utc(now) if now else utc_now()
        return expiry - now <= self.buffer
