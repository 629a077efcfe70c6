"""
Authentication Module

Identifies the calling user from the X-User-ID header. Credential
checks happen upstream of this service.
"""

from fastapi import Header, HTTPException, status


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-ID"),
) -> str:
    """Get the current user id from request headers.

    Args:
        x_user_id: User id set by the authenticating proxy

    Returns:
        User id

    Raises:
        HTTPException: If the header is missing
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )

    return x_user_id.strip()
