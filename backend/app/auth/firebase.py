import os
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, auth, firestore
from dotenv import load_dotenv

load_dotenv()


def _read_private_key() -> str:
    """Normalize FIREBASE_PRIVATE_KEY (strip quotes, expand escaped newlines)."""
    private_key_raw = os.getenv("FIREBASE_PRIVATE_KEY", "").strip()
    if not private_key_raw:
        return ""
    if (private_key_raw.startswith('"') and private_key_raw.endswith('"')) or \
       (private_key_raw.startswith("'") and private_key_raw.endswith("'")):
        private_key_raw = private_key_raw[1:-1]
    return private_key_raw.replace("\\n", "\n")


def _build_credentials():
    firebase_credentials = {
        "type": os.getenv("FIREBASE_TYPE", "service_account"),
        "project_id": os.getenv("FIREBASE_PROJECT_ID"),
        "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID"),
        "private_key": _read_private_key(),
        "client_email": os.getenv("FIREBASE_CLIENT_EMAIL"),
        "client_id": os.getenv("FIREBASE_CLIENT_ID"),
        "auth_uri": os.getenv("FIREBASE_AUTH_URI", "https://accounts.google.com/o/oauth2/auth"),
        "token_uri": os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token"),
        "auth_provider_x509_cert_url": os.getenv("FIREBASE_AUTH_PROVIDER_X509_CERT_URL", "https://www.googleapis.com/oauth2/v1/certs"),
        "client_x509_cert_url": os.getenv("FIREBASE_CLIENT_X509_CERT_URL"),
        "universe_domain": os.getenv("FIREBASE_UNIVERSE_DOMAIN", "googleapis.com"),
    }

    required_fields = ["project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if not firebase_credentials.get(field)]
    if not missing_fields:
        return credentials.Certificate(firebase_credentials)

    # Fall back to a service account file
    service_account_path = os.getenv("FIREBASE_CREDENTIALS")
    if not service_account_path:
        raise ValueError(
            f"Firebase credentials are missing. Please set FIREBASE_CREDENTIALS (file path) "
            f"or set all required FIREBASE_* environment variables. Missing fields: {missing_fields}"
        )

    # Relative paths resolve against the backend directory
    if not os.path.isabs(service_account_path):
        backend_dir = Path(__file__).parent.parent.parent
        service_account_path = str(backend_dir / service_account_path.lstrip('./'))

    if not os.path.exists(service_account_path):
        raise FileNotFoundError(
            f"Firebase service account file not found: {service_account_path}. "
            f"Please check that the file exists or set all FIREBASE_* environment variables."
        )
    return credentials.Certificate(service_account_path)


def initialize_firebase() -> None:
    """Initialize the Firebase Admin SDK once per process.

    Initialization is deferred until the first auth or Firestore call so the
    app can be imported (and tested) without credentials.
    """
    if firebase_admin._apps:
        return
    firebase_admin.initialize_app(_build_credentials())
    print("[FIREBASE] Admin SDK initialized")


def get_firebase_auth():
    """Get the Firebase Auth module used to verify ID tokens.

    Example usage:
        auth_service = get_firebase_auth()
        decoded_token = auth_service.verify_id_token(id_token)
    """
    initialize_firebase()
    return auth


def get_firestore_db():
    """Get Firestore database instance."""
    try:
        initialize_firebase()
        return firestore.client()
    except Exception as e:
        raise RuntimeError(f"Firestore not available: {e}")
