from typing import Dict, Any
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin.auth import (
    InvalidIdTokenError,
    ExpiredIdTokenError,
    RevokedIdTokenError,
    UserDisabledError,
    CertificateFetchError,
)

from app.auth.firebase import get_firebase_auth

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Dict[str, Any]:
    """Validate the trainer's Firebase ID token and return a normalized user.

    Args:
        credentials: Bearer credentials from the Authorization header

    Returns:
        Dict[str, Any]: ``uid``, ``email``, ``email_verified`` and ``name``

    Raises:
        HTTPException: 401 for missing, invalid, expired, revoked or disabled
            tokens; 503 when signing certificates cannot be fetched
    """
    token = credentials.credentials
    if not token:
        raise _unauthorized("Authentication token is required")

    auth_service = get_firebase_auth()
    try:
        # check_revoked=False still validates signature and expiry
        decoded_token = auth_service.verify_id_token(token, check_revoked=False)
    except (InvalidIdTokenError, ExpiredIdTokenError) as e:
        print(f"[AUTH] Token validation failed: {type(e).__name__}: {str(e)}")
        raise _unauthorized("Invalid or expired authentication token") from e
    except RevokedIdTokenError as e:
        raise _unauthorized("Authentication token has been revoked") from e
    except UserDisabledError as e:
        raise _unauthorized("Trainer account has been disabled") from e
    except CertificateFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service temporarily unavailable",
        ) from e
    except ValueError as e:
        print(f"[AUTH] Token format error: {str(e)}")
        raise _unauthorized("Invalid authentication token format") from e

    return {
        "uid": decoded_token["uid"],
        "email": decoded_token.get("email"),
        "email_verified": decoded_token.get("email_verified", False),
        "name": decoded_token.get("name"),
    }
