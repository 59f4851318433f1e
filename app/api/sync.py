"""
Sync status endpoint
"""
from fastapi import APIRouter, Depends

from app.api.auth import get_session_manager
from app.services.session import SessionManager

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status")
async def sync_status(manager: SessionManager = Depends(get_session_manager)):
    """Where the product subscription stands for the current session"""
    user = manager.current_user()
    engine = manager.engine
    return {
        "auth_checking": manager.auth_checking,
        "user_email": user.email if user else None,
        "state": manager.sync_state.value,
        "loading": manager.product_store.loading,
        "items": len(manager.product_store),
        "last_error": engine.last_error if engine else None,
    }
