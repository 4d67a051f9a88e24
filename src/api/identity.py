"""
Caller identity resolution.

Two modes are supported:

- ``header``: the external auth id is taken verbatim from the
  ``x-firebase-uid`` request header. Suitable for local development only,
  since nothing proves the caller owns that id.
- ``firebase``: an ``Authorization: Bearer <id token>`` header is verified
  with the Firebase Admin SDK and the token's ``uid`` becomes the identity.
"""
from typing import Optional

import firebase_admin
from firebase_admin import auth
from fastapi import Request

from src.api.exceptions import AuthRequiredError
from src.api.logger import get_logger

logger = get_logger(__name__)

IDENTITY_HEADER = "x-firebase-uid"


def _ensure_firebase_app() -> None:
    """Initialize the default Firebase app once, using application default credentials."""
    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app()


class IdentityResolver:
    """Extracts the caller's external auth id from a request."""

    def __init__(self, mode: str = "header"):
        self.mode = mode

    # PUBLIC_INTERFACE
    def resolve(self, request: Request) -> Optional[str]:
        """
        Return the caller's external auth id, or None when no credentials
        were sent.

        Raises:
            AuthRequiredError: If a bearer token is present but fails verification.
        """
        if self.mode == "firebase":
            return self._from_bearer_token(request.headers.get("authorization"))
        return request.headers.get(IDENTITY_HEADER) or None

    # PUBLIC_INTERFACE
    def require(self, request: Request) -> str:
        """Like ``resolve`` but raises ``AuthRequiredError`` when no identity is sent."""
        external_id = self.resolve(request)
        if not external_id:
            raise AuthRequiredError()
        return external_id

    def _from_bearer_token(self, authorization: Optional[str]) -> Optional[str]:
        if not authorization:
            return None
        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            logger.info("Ignoring malformed Authorization header")
            return None

        _ensure_firebase_app()
        try:
            decoded_token = auth.verify_id_token(parts[1])
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
                auth.RevokedIdTokenError, auth.CertificateFetchError) as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthRequiredError("Invalid authentication token") from e
        return decoded_token["uid"]
