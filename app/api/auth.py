"""Authentication API: sign up, login, logout, current user."""
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from app.connectors.base import AuthenticationError, AuthUser
from app.services.session import SessionManager

router = APIRouter(prefix="/auth", tags=["auth"])


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def require_user(manager: SessionManager = Depends(get_session_manager)) -> AuthUser:
    """Dependency: raise 401 if nobody is signed in."""
    user = manager.current_user()
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


# ── Schemas ──────────────────────────────────────────────

class CredentialsRequest(BaseModel):
    email: str
    password: str


def _user_out(u: AuthUser) -> dict:
    return {"id": u.id, "email": u.email}


# ── Auth endpoints ───────────────────────────────────────

@router.post("/signup", status_code=201)
async def signup(body: CredentialsRequest, manager: SessionManager = Depends(get_session_manager)):
    """Create an account and start syncing its products."""
    try:
        user = await manager.sign_up(body.email, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "user": _user_out(user)}


@router.post("/login")
async def login(body: CredentialsRequest, manager: SessionManager = Depends(get_session_manager)):
    """Sign in and start syncing the user's products."""
    try:
        user = await manager.sign_in(body.email, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"success": True, "user": _user_out(user)}


@router.post("/logout")
async def logout(manager: SessionManager = Depends(get_session_manager)):
    """End the session and drop the local projection."""
    await manager.sign_out()
    return {"success": True}


@router.get("/me")
async def me(user: AuthUser = Depends(require_user)):
    """Return current authenticated user."""
    return _user_out(user)
