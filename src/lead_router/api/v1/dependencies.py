"""
API-specific dependencies
"""
import secrets
from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from lead_router.core.config import settings
from lead_router.core.dependencies import get_db
from lead_router.models import User


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    """
    Verify the admin API key from the request header.
    """
    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required"
        )
    if not secrets.compare_digest(x_api_key, settings.security.admin_api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )
    return x_api_key


def get_actor_id(
    x_actor_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[int]:
    """
    The acting user named by ``X-Actor-Id``, recorded on audit entries.
    Absent header means an anonymous or system actor.
    """
    if x_actor_id is None:
        return None
    if db.get(User, x_actor_id) is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown actor"
        )
    return x_actor_id
