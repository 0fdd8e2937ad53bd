"""Shared-secret access gate."""

import hmac
from typing import Optional

from fastapi import Header, HTTPException, Query, status

from vault.config import ACCESS_PASSWORD


def verify_password(password: Optional[str], expected: str) -> bool:
    """
    Compare a supplied password with the configured one in constant time.

    Args:
        password: Password sent by the client (may be None)
        expected: Configured password; an empty value rejects everything

    Returns:
        True if the password matches
    """
    if not expected or password is None:
        return False
    return hmac.compare_digest(password.encode('utf-8'), expected.encode('utf-8'))


async def require_password(
    x_password: Optional[str] = Header(None),
    password: Optional[str] = Query(None),
) -> None:
    """
    FastAPI dependency checking the X-Password header or password query parameter.

    Raises:
        HTTPException: 401 if the password is missing or wrong
    """
    supplied = x_password if x_password is not None else password

    if not verify_password(supplied, ACCESS_PASSWORD):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid password"
        )
