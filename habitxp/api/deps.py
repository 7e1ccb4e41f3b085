"""
FastAPI dependencies (DB session, current user)
"""
from fastapi import Request, HTTPException, status

from habitxp.infrastructure.db.session import get_db as _get_db


# Re-exported so routers and tests override a single dependency
get_db = _get_db


def get_current_user_id(request: Request) -> int:
    """
    user_id stored in the signed session cookie by the auth service

    Raises:
        HTTPException(401): no user in the session
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return int(user_id)
