from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from .firebase_auth import firebase_auth
from ..core.exceptions import InventoryError
from ..models.database_models import ActorContext
from ..services.user_profile_service import user_profile_service

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """
    Verify Firebase authentication token and return the decoded claims.
    Raises 401 if the token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_data = await firebase_auth.verify_token(credentials.credentials)

        if not user_data:
            logger.warning("[Auth] Token verification failed - invalid token")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return user_data
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"[Auth] ❌ Authentication error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_actor(request: Request, user_data: dict = Depends(get_current_user)) -> ActorContext:
    """The signed-in user with profile username/role, passed explicitly into every mutation"""
    device_info = {
        "userAgent": request.headers.get("user-agent", ""),
        "platform": request.headers.get("sec-ch-ua-platform", "").strip('"'),
    }
    actor = await user_profile_service.build_actor(user_data, device_info)
    logger.info(f"[Auth] ✅ Authenticated user: {actor.email} with role: {actor.role or 'none'}")
    return actor


def require_role(required_roles: list):
    async def role_checker(actor: ActorContext = Depends(get_current_actor)) -> ActorContext:
        user_role = (actor.role or "").lower()
        logger.info(f"[Auth] Checking role: user has '{user_role}', required: {required_roles}")

        if user_role not in required_roles:
            logger.warning(f"[Auth] Role check failed: user role '{user_role}' not in required roles {required_roles}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_roles}, current role: {user_role}"
            )
        return actor
    return role_checker


require_admin = require_role(["admin"])
