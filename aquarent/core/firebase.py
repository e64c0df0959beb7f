"""Firebase configuration and initialization"""

import firebase_admin
from firebase_admin import credentials
import json
import logging
from typing import Optional

from .notification_config import PushConfig

logger = logging.getLogger(__name__)

firebase_app: Optional[firebase_admin.App] = None

def initialize_firebase(config: PushConfig) -> Optional[firebase_admin.App]:
    """Initialize Firebase Admin SDK once per process"""
    global firebase_app

    if firebase_app:
        return firebase_app

    try:
        # Try to load credentials from the inline JSON first
        if config.firebase_credentials_json:
            cred = credentials.Certificate(json.loads(config.firebase_credentials_json))
        # Or from file path
        elif config.firebase_credentials_path:
            cred = credentials.Certificate(config.firebase_credentials_path)
        else:
            raise ValueError("Firebase credentials not configured")

        firebase_app = firebase_admin.initialize_app(cred)
        logger.info("Firebase initialized")
        return firebase_app

    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {e}")
        return None
