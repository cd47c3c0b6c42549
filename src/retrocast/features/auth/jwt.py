"""App-level bearer tokens.

End-user identity is established elsewhere; this service only checks that a
bearer token was signed with the shared secret and issued for RetroCast, and
reads its ``sub`` claim as the user id that owns jobs, videos and ads.
"""

import time
from typing import Any

import jwt

from retrocast.platform.config import get_settings
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)

_ALGORITHM = "HS256"
_ISSUER = "retrocast"
_REQUIRED_CLAIMS = ["sub", "exp", "iss"]

# Long enough to poll a job through a full render
_TOKEN_LIFETIME_SECONDS = 12 * 60 * 60

_DEV_SECRET = "retrocast-dev-secret-do-not-use-in-prod"


def _signing_secret() -> str:
    """JWT_SECRET, or a fixed secret in development. Missing in production is fatal."""
    settings = get_settings()
    if settings.jwt_secret:
        return settings.jwt_secret

    if settings.env == "development":
        logger.warning("jwt_secret_missing_using_dev_default", hint="Set JWT_SECRET in .env")
        return _DEV_SECRET

    raise RuntimeError(
        "JWT_SECRET environment variable is required outside development. "
        "Generate one with: openssl rand -hex 32"
    )


def create_access_token(
    user_id: str, name: str = "", lifetime_seconds: int = _TOKEN_LIFETIME_SECONDS
) -> str:
    """Sign a token whose ``sub`` is *user_id*. Used by the ``token`` CLI command."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "sub": user_id,
        "name": name,
        "iss": _ISSUER,
        "iat": now,
        "exp": now + lifetime_seconds,
    }
    return jwt.encode(claims, _signing_secret(), algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, issuer and expiry and return the claims.

    Raises:
        ValueError: If the token is expired, forged, or missing ``sub``.
    """
    try:
        claims = jwt.decode(
            token,
            _signing_secret(),
            algorithms=[_ALGORITHM],
            issuer=_ISSUER,
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except jwt.InvalidTokenError as exc:
        raise ValueError(f"Invalid token: {exc}")

    if not claims["sub"]:
        raise ValueError("Invalid token: empty subject")
    return claims
