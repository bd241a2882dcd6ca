from firebase_admin import auth
from typing import Optional
import logging

from ..core.firebase_init import initialize_firebase, is_firebase_available
from ..core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class FirebaseAuth:
    def _ensure_initialized(self):
        if not is_firebase_available():
            if not initialize_firebase():
                raise StoreUnavailableError("Firebase initialization failed - Auth not available")

    async def verify_token(self, token: str) -> Optional[dict]:
        """Decoded claims of a Firebase ID token, or None if it does not verify"""
        self._ensure_initialized()
        try:
            return auth.verify_id_token(token)
        except Exception as e:
            logger.warning(f"[Auth] Token verification failed: {e}")
            return None


firebase_auth = FirebaseAuth()
