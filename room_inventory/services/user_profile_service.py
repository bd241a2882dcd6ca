from typing import Dict, Any, Optional
import logging

from ..core.exceptions import UnauthenticatedError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS
from ..models.database_models import ActorContext

logger = logging.getLogger(__name__)


class UserProfileService:
    @staticmethod
    async def get_user_profile(uid: str) -> Optional[Dict[str, Any]]:
        """Profile document users/{uid}, or None when absent or unreadable"""
        success, user_data, error = await database_service.get_document(
            COLLECTIONS['users'],
            uid
        )

        if not success:
            logger.warning(f"[Profile] Could not read profile for {uid}: {error}")
            return None

        return user_data

    @staticmethod
    async def build_actor(token_data: Dict[str, Any], device_info: Optional[Dict[str, Any]] = None) -> ActorContext:
        """
        Combine a verified Firebase token with the user's profile document.

        The profile supplies username and role; the token supplies uid, email
        and display name.
        """
        uid = token_data.get('uid') or token_data.get('user_id')
        if not uid:
            raise UnauthenticatedError("Token carries no user id")
        profile = await UserProfileService.get_user_profile(uid) or {}

        return ActorContext(
            uid=uid,
            email=token_data.get('email') or profile.get('email'),
            display_name=token_data.get('name'),
            username=profile.get('username'),
            role=profile.get('role') or token_data.get('role') or '',
            device_info=device_info or {},
        )


user_profile_service = UserProfileService()
