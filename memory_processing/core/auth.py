"""
Bearer-token authentication for memory endpoints.
Tokens are verified against Supabase Auth and resolve to the owning user id.
"""

import logging
from typing import Optional
from fastapi import Depends, Header

from memory_processing.core.config import Config, config
from memory_processing.core.errors import APIError, ErrorCode

logger = logging.getLogger(__name__)


class SupabaseTokenVerifier:
    """Verifies user JWTs with Supabase Auth."""

    def __init__(self, settings: Config):
        self.settings = settings

    async def verify(self, token: str) -> Optional[str]:
        """
        Resolve a JWT to a user id.

        Args:
            token: Bearer token from the request

        Returns:
            User id if the token is valid, None otherwise
        """
        if not self.settings.has_supabase_credentials():
            logger.error("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY environment variables")
            raise APIError(ErrorCode.INTERNAL_ERROR, "Server configuration error")

        try:
            response = self.settings.get_supabase_client().auth.get_user(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        user = getattr(response, "user", None)
        return user.id if user else None


def get_token_verifier() -> SupabaseTokenVerifier:
    return SupabaseTokenVerifier(config)


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    verifier: SupabaseTokenVerifier = Depends(get_token_verifier),
) -> str:
    """
    Return the id of the user owning the request's bearer token,
    otherwise raise 401 UNAUTHORIZED.
    """
    if not authorization:
        raise APIError(ErrorCode.UNAUTHORIZED, "Missing authorization header")

    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise APIError(ErrorCode.UNAUTHORIZED, "Invalid authorization header format")

    user_id = await verifier.verify(token)
    if not user_id:
        raise APIError(ErrorCode.UNAUTHORIZED, "Invalid or expired token")

    return user_id
