"""OIDC verification of task-queue requests to the worker endpoint."""

from fastapi import Header, HTTPException
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from retrocast.platform.config import get_settings
from retrocast.platform.logging_config import get_logger

logger = get_logger(__name__)


def verify_worker_token(token: str, audience: str, service_account: str) -> dict:
    """Verify a Google-signed OIDC token and its issuing service account.

    Raises:
        ValueError: If the signature, audience, expiry or email is wrong.
    """
    try:
        claims = id_token.verify_oauth2_token(
            token, google_requests.Request(), audience=audience
        )
    except (ValueError, google_auth_exceptions.GoogleAuthError) as exc:
        raise ValueError(f"Invalid OIDC token: {exc}")

    if service_account and claims.get("email") != service_account:
        raise ValueError(f"Unexpected token email: {claims.get('email')}")
    if service_account and not claims.get("email_verified", False):
        raise ValueError("Token email is not verified")
    return claims


def require_task_queue_caller(authorization: str = Header(default="")) -> None:
    """FastAPI dependency guarding the internal worker endpoint.

    Verification is skipped when WORKER_BASE_URL is unset (local development).
    """
    settings = get_settings()
    if not settings.worker_base_url:
        logger.warning("worker_oidc_verification_skipped", reason="WORKER_BASE_URL unset")
        return

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing OIDC token")

    try:
        claims = verify_worker_token(
            authorization.removeprefix("Bearer ").strip(),
            audience=settings.worker_base_url,
            service_account=settings.worker_service_account,
        )
    except ValueError as exc:
        logger.warning("worker_oidc_rejected", error=str(exc))
        raise HTTPException(status_code=401, detail=str(exc))

    logger.debug("worker_oidc_verified", email=claims.get("email"))
