import logging
from typing import Callable, Optional

from supabase import AuthError, Client, create_client

from redline.config.settings import get_settings
from redline.models.auth import AuthResult, SessionInfo

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = ("github", "google")


class AuthServiceError(Exception):
    """Authentication failure carrying a message fit to show the user."""


def _friendly_message(error: Exception) -> str:
    message = getattr(error, "message", None) or str(error)
    if "Email not confirmed" in message:
        return "Please verify your email address before logging in"
    if "Invalid login credentials" in message:
        return "Invalid email or password"
    return message


def _session_info(session) -> Optional[SessionInfo]:
    if session is None:
        return None
    user = getattr(session, "user", None)
    return SessionInfo(
        user_id=str(getattr(user, "id", "")),
        email=getattr(user, "email", None),
        access_token=session.access_token,
        expires_at=getattr(session, "expires_at", None),
    )


def _require_fields(email: str, password: str) -> None:
    if not email.strip() or not password.strip():
        raise AuthServiceError("Please fill in all fields")


class AuthService:
    """Thin wrapper over the Supabase auth client."""

    def __init__(self, client: Client):
        self.client = client

    def sign_in(self, email: str, password: str) -> AuthResult:
        _require_fields(email, password)
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            raise AuthServiceError(_friendly_message(e)) from e
        except Exception as e:
            logger.error("Unexpected sign-in error: %s", e)
            raise AuthServiceError("An unexpected error occurred") from e
        logger.info("Signed in with password")
        return AuthResult(session=_session_info(response.session))

    def sign_up(self, email: str, password: str) -> AuthResult:
        _require_fields(email, password)
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            raise AuthServiceError(_friendly_message(e)) from e
        except Exception as e:
            logger.error("Unexpected sign-up error: %s", e)
            raise AuthServiceError("An unexpected error occurred") from e
        return AuthResult(
            session=_session_info(response.session),
            message="Please check your email for verification link",
        )

    def sign_in_with_oauth(self, provider: str, redirect_to: Optional[str] = None) -> str:
        """Start an OAuth flow and return the provider URL to redirect the browser to."""
        if provider not in OAUTH_PROVIDERS:
            raise AuthServiceError(f"Unsupported provider: {provider}")
        credentials = {"provider": provider}
        if redirect_to:
            credentials["options"] = {"redirect_to": redirect_to}
        try:
            response = self.client.auth.sign_in_with_oauth(credentials)
        except AuthError as e:
            raise AuthServiceError(_friendly_message(e)) from e
        logger.info("Initiating %s authentication", provider)
        return response.url

    def get_session(self) -> Optional[SessionInfo]:
        try:
            return _session_info(self.client.auth.get_session())
        except AuthError as e:
            logger.warning("Could not read session: %s", e)
            return None

    def on_session_change(self, callback: Callable[[str, Optional[SessionInfo]], None]) -> Callable[[], None]:
        """Subscribe to auth state changes; returns the unsubscribe function."""

        def listener(event, session):
            callback(str(event), _session_info(session))

        subscription = self.client.auth.on_auth_state_change(listener)
        return subscription.unsubscribe

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except AuthError as e:
            logger.error("Error logging out: %s", e)
            raise AuthServiceError(_friendly_message(e)) from e


_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    global _auth_service
    if _auth_service is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise AuthServiceError("Authentication is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY.")
        _auth_service = AuthService(create_client(settings.supabase_url, settings.supabase_anon_key))
    return _auth_service
