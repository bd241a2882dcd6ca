from firebase_admin import firestore
import logging

from ..core.firebase_init import initialize_firebase, is_firebase_available
from ..core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

_client = None


def get_firestore_client():
    """Return the shared Firestore client, initializing Firebase on first use."""
    global _client

    if _client is not None:
        return _client

    if not is_firebase_available() and not initialize_firebase():
        raise StoreUnavailableError("Firestore is not available - Firebase initialization failed")

    _client = firestore.client()
    logger.info("[Firestore] Client created")
    return _client
