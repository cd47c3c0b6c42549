"""FastAPI dependency functions for authentication."""

from fastapi import Header, HTTPException

from retrocast.features.auth import jwt as app_jwt


def get_current_user(
    authorization: str = Header(default=""),
    token: str | None = None,
) -> dict:
    """Extract and validate JWT from the Authorization header or query param.

    Supports ``Authorization: Bearer <token>`` (preferred) and a ``?token=``
    query param for clients that cannot set headers when polling.

    Usage::

        @router.get("/protected")
        def endpoint(user: dict = Depends(get_current_user)):
            user_id = user["sub"]

    Raises:
        HTTPException(401): If the token is missing, invalid, or expired.
    """
    jwt_token = None

    if authorization.startswith("Bearer "):
        jwt_token = authorization.removeprefix("Bearer ").strip()

    if not jwt_token and token:
        jwt_token = token

    if not jwt_token:
        raise HTTPException(
            status_code=401,
            detail="Missing or invalid Authorization header",
        )

    try:
        return app_jwt.decode_access_token(jwt_token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
