from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from redline.models.auth import AuthResult, Credentials, OAuthProvider, SessionInfo
from redline.services.auth_service import AuthService, AuthServiceError, get_auth_service

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def auth_service() -> AuthService:
    try:
        return get_auth_service()
    except AuthServiceError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/sign-in", response_model=AuthResult)
def sign_in(credentials: Credentials, auth: AuthService = Depends(auth_service)):
    try:
        return auth.sign_in(credentials.email, credentials.password)
    except AuthServiceError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/sign-up", response_model=AuthResult)
def sign_up(credentials: Credentials, auth: AuthService = Depends(auth_service)):
    try:
        return auth.sign_up(credentials.email, credentials.password)
    except AuthServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/oauth/{provider}")
def sign_in_with_oauth(
    provider: OAuthProvider,
    redirect_to: Optional[str] = None,
    auth: AuthService = Depends(auth_service),
):
    try:
        return {"url": auth.sign_in_with_oauth(provider, redirect_to)}
    except AuthServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/session", response_model=Optional[SessionInfo])
def get_session(auth: AuthService = Depends(auth_service)):
    return auth.get_session()


@router.post("/sign-out")
def sign_out(auth: AuthService = Depends(auth_service)):
    try:
        auth.sign_out()
    except AuthServiceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok"}
