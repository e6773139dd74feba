import logging
import os

import firebase_admin
from firebase_admin import credentials

from config import FIREBASE_CREDENTIALS_PATH

logger = logging.getLogger(__name__)

# Initialize Firebase Admin only once
_initialized = False


def initialize_firebase_admin() -> bool:
    """Initialize the Firebase Admin SDK; returns whether it is usable."""
    global _initialized
    if _initialized:
        return True

    if os.path.exists(FIREBASE_CREDENTIALS_PATH):
        firebase_admin.initialize_app(credentials.Certificate(FIREBASE_CREDENTIALS_PATH))
        _initialized = True
        logger.info("Firebase Admin initialized from %s", FIREBASE_CREDENTIALS_PATH)
    elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        firebase_admin.initialize_app()
        _initialized = True
        logger.info("Firebase Admin initialized from GOOGLE_APPLICATION_CREDENTIALS")
    else:
        logger.warning(
            "Firebase credentials not found at %s; token verification and push notifications are disabled",
            FIREBASE_CREDENTIALS_PATH,
        )
    return _initialized
