import os
import json
import logging
import firebase_admin
from firebase_admin import credentials

from app.core.settings import settings

logger = logging.getLogger("app.firebase")


def init_firebase():
    """Initialize the Firebase admin SDK used to verify ID tokens.

    Behavior:
    - If FIREBASE_CERT_JSON is set, parse it as a service account JSON blob.
    - Else if FIREBASE_CERT_PATH points at an existing file, load that.
    - Else, skip initialization (token verification will then reject everything).
    """
    if firebase_admin._apps:
        return

    if settings.firebase_cert_json:
        try:
            cred = credentials.Certificate(json.loads(settings.firebase_cert_json))
            firebase_admin.initialize_app(cred)
            logger.info("Firebase initialized from FIREBASE_CERT_JSON")
            return
        except (ValueError, IOError) as e:
            # Fall through to file-based loading which may still work
            logger.warning(f"Failed to init Firebase from FIREBASE_CERT_JSON: {e}")

    fb_path = settings.firebase_cert_path
    if fb_path and os.path.exists(fb_path):
        try:
            cred = credentials.Certificate(fb_path)
            firebase_admin.initialize_app(cred)
            logger.info(f"Firebase initialized from {fb_path}")
            return
        except (ValueError, IOError) as e:
            logger.warning(f"Failed to init Firebase from path {fb_path}: {e}")

    logger.warning("No Firebase credentials found; skipping Firebase initialization.")
