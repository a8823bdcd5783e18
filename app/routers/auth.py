"""
Auth Endpoints

Sign in, sign out and the current technician.
"""

from fastapi import APIRouter, Depends, HTTPException
from supabase import AuthError

from app.dependencies import bearer_token, get_auth_service, get_current_user
from app.models.schemas import CurrentUser, LoginRequest

router = APIRouter()


@router.post("/login")
async def login(credentials: LoginRequest, auth=Depends(get_auth_service)):
    """Sign in with email and password; returns the session tokens"""
    try:
        return await auth.login(credentials.email, credentials.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/logout")
async def logout(token: str = Depends(bearer_token), auth=Depends(get_auth_service)):
    try:
        await auth.logout(token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"success": "Signed out"}


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)):
    return user
