"""
# Auth Service

Account creation and sign-in, both local (e-mail + password) and through Google.

Every successful flow returns an `AuthResponse`: a signed bearer token whose `sub`
claim is the user id, plus the public view of the user.

**Registration:**
1.  Reject a taken username or e-mail with `ConflictError`.
2.  Store the user with a bcrypt password hash.
3.  Create the default brain. If that fails the user is deleted again before the
    error propagates, so no account is left without a brain.

**Google sign-in:**
*   The ID token is checked against Google's `tokeninfo` endpoint and its `aud`
    claim must equal `GOOGLE_CLIENT_ID`.
*   An unknown e-mail creates a password-less account (plus default brain).
*   A known e-mail without a linked Google id gets it linked once Google reports
    the address as verified (`email_verified`); an empty avatar is
    filled from the Google picture.
"""

import re
import secrets
from typing import Any, Dict, Optional

import httpx

from second_brain.config import settings
from second_brain.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.user_models import (
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    AuthResponse,
    UserInDB,
    UserPublic,
)
from second_brain.repositories.base import UserRepository
from second_brain.services.brain_service import BrainService
from second_brain.utils.security_utils import create_access_token, hash_password, new_id, verify_password

logger = get_logger(prefix="[Auth Service]")

INVALID_CREDENTIALS = "Invalid credentials"
GOOGLE_AUTH_FAILED = "Google authentication failed"
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _email_verified(claims: Dict[str, Any]) -> bool:
    # tokeninfo reports the flag as the string "true"
    return str(claims.get("email_verified", "")).lower() == "true"


class GoogleTokenVerifier:
    """Verifies Google ID tokens through the `tokeninfo` endpoint."""

    def __init__(self, client_id: Optional[str] = None, tokeninfo_url: Optional[str] = None):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.tokeninfo_url = tokeninfo_url or settings.GOOGLE_TOKENINFO_URL

    async def verify(self, id_token: str) -> Dict[str, Any]:
        """
        Return the verified token claims.

        Raises:
            AuthenticationError: If Google rejects the token, the audience does not
                match, or Google cannot be reached.
        """
        if not self.client_id:
            logger.error("Google sign-in attempted but GOOGLE_CLIENT_ID is not configured")
            raise AuthenticationError(GOOGLE_AUTH_FAILED)

        try:
            async with httpx.AsyncClient(timeout=settings.GOOGLE_VERIFY_TIMEOUT) as client:
                response = await client.get(self.tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.error("Google token verification request failed: %s", e)
            raise AuthenticationError(GOOGLE_AUTH_FAILED)

        if response.status_code != 200:
            logger.warning("Google rejected ID token (HTTP %d)", response.status_code)
            raise AuthenticationError(GOOGLE_AUTH_FAILED)

        try:
            claims = response.json()
        except ValueError:
            logger.warning("Google tokeninfo returned a non-JSON body")
            raise AuthenticationError(GOOGLE_AUTH_FAILED)
        if not isinstance(claims, dict) or claims.get("aud") != self.client_id:
            logger.warning("Google ID token audience mismatch")
            raise AuthenticationError(GOOGLE_AUTH_FAILED)
        return claims


class AuthService:
    def __init__(self, users: UserRepository, brain_service: BrainService, google: GoogleTokenVerifier):
        self.users = users
        self.brain_service = brain_service
        self.google = google

    @staticmethod
    def _auth_response(user: UserInDB) -> AuthResponse:
        return AuthResponse(token=create_access_token(user.user_id), user=UserPublic.from_user(user))

    @staticmethod
    def _validate_registration(username: str, email: str, password: str):
        errors = []
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            errors.append(
                {"field": "username", "message": f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters"}
            )
        if not EMAIL_PATTERN.match(email):
            errors.append({"field": "email", "message": "Please enter a valid email"})
        if len(password or "") < PASSWORD_MIN_LENGTH:
            errors.append({"field": "password", "message": "Password must be at least 6 characters"})
        elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            errors.append({"field": "password", "message": f"Password must be at most {PASSWORD_MAX_BYTES} bytes"})
        if errors:
            raise ValidationError(errors=errors)

    async def _create_with_default_brain(self, user: UserInDB) -> UserInDB:
        created = await self.users.create(user)
        try:
            await self.brain_service.create_default_brain(created.user_id)
        except Exception:
            logger.error("Default brain creation failed; removing user %s", created.user_id, exc_info=True)
            await self.users.delete(created.user_id)
            raise
        return created

    async def register(self, username: str, email: str, password: str) -> AuthResponse:
        """
        Create a local account and its default brain.

        Raises:
            ValidationError: If username, e-mail or password are malformed.
            ConflictError: If the username or e-mail is already taken.
        """
        username = (username or "").strip()
        email = (email or "").strip().lower()
        self._validate_registration(username, email, password)

        if await self.users.get_by_email(email) or await self.users.get_by_username(username):
            raise ConflictError("User already exists with this email or username")

        user = UserInDB(
            user_id=new_id("usr"),
            username=username,
            email=email,
            hashed_password=hash_password(password),
        )
        created = await self._create_with_default_brain(user)
        logger.info("Registered user %s (%s)", created.user_id, created.username)
        return self._auth_response(created)

    async def login(self, email: str, password: str) -> AuthResponse:
        """
        Sign in with e-mail and password.

        Raises:
            AuthenticationError: On unknown e-mail, password-less account or wrong password.
        """
        user = await self.users.get_by_email((email or "").strip().lower())
        if user is None or not verify_password(password or "", user.hashed_password):
            logger.info("Failed login attempt for %s", email)
            raise AuthenticationError(INVALID_CREDENTIALS)
        logger.info("User %s logged in", user.user_id)
        return self._auth_response(user)

    async def me(self, user_id: str) -> UserPublic:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserPublic.from_user(user)

    async def _unique_username(self, base: str) -> str:
        username = base
        if len(username) < USERNAME_MIN_LENGTH:
            username = f"{username}user"
        username = username[: USERNAME_MAX_LENGTH - 3]
        if await self.users.get_by_username(username):
            username = f"{username}{secrets.randbelow(1000)}"
        return username

    async def google_login(self, id_token: str) -> AuthResponse:
        """
        Sign in (or sign up) with a Google ID token.

        Raises:
            AuthenticationError: If the token cannot be verified or carries no e-mail.
        """
        claims = await self.google.verify(id_token)

        email = (claims.get("email") or "").strip().lower()
        if not email:
            raise AuthenticationError("Email not found in token")
        google_id = claims.get("sub")
        picture = claims.get("picture")

        user = await self.users.get_by_email(email)
        if user is None:
            base = re.sub(r"\s+", "", claims.get("name") or "").lower() or email.split("@")[0]
            user = UserInDB(
                user_id=new_id("usr"),
                username=await self._unique_username(base),
                email=email,
                google_id=google_id,
                avatar=picture,
            )
            user = await self._create_with_default_brain(user)
            logger.info("Created user %s from Google sign-in", user.user_id)
        elif not user.google_id:
            if not _email_verified(claims):
                logger.warning("Refusing to link unverified Google e-mail to user %s", user.user_id)
                raise AuthenticationError("Google e-mail address is not verified")
            fields: Dict[str, Any] = {"google_id": google_id}
            if picture and not user.avatar:
                fields["avatar"] = picture
            user = await self.users.update(user.user_id, fields) or user
            logger.info("Linked Google account to user %s", user.user_id)

        return self._auth_response(user)
