from dataclasses import dataclass
import logging
from typing import Optional

from fastapi import Header, HTTPException, status


logger = logging.getLogger("auth.deps")


@dataclass
class AuthContext:
    user_id: str


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> AuthContext:
    """Resolve the caller from the ``X-User-Id`` header set by the upstream identity proxy."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user context")
    logger.debug("AuthContext built", extra={"sub": user_id})
    return AuthContext(user_id=user_id)
