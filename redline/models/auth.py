from typing import Literal, Optional

from pydantic import BaseModel

OAuthProvider = Literal["github", "google"]


class Credentials(BaseModel):
    email: str
    password: str


class SessionInfo(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: str
    expires_at: Optional[int] = None


class AuthResult(BaseModel):
    """Outcome of sign-in / sign-up; session is None until the email is verified"""
    session: Optional[SessionInfo] = None
    message: str = ""
