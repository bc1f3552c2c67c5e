import firebase_admin
from firebase_admin import credentials

from clipbook.config import get_settings

_firebase_app = None


def get_firebase_app() -> firebase_admin.App:
    """Initialize (once) and return the Firebase Admin app used for auth and Firestore."""
    global _firebase_app
    if _firebase_app is None:
        settings = get_settings()
        try:
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            # App not initialized yet
            if settings.firebase_project_id:
                cred = credentials.ApplicationDefault()
                _firebase_app = firebase_admin.initialize_app(
                    cred, {"projectId": settings.firebase_project_id}
                )
            else:
                _firebase_app = firebase_admin.initialize_app()
    return _firebase_app
