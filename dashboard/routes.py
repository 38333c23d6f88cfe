"""
Dashboard API routes.

Route prefix: /dashboard
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from auth.dependencies import get_current_user_id, get_user_store
from auth.exceptions import NotFoundError
from auth.routes import public_profile
from auth.store import UserStore

router = APIRouter(tags=["dashboard"], dependencies=[Depends(get_current_user_id)])


@router.get("")
async def dashboard_home(
    user_id: str = Depends(get_current_user_id),
    store: UserStore = Depends(get_user_store),
) -> Dict[str, Any]:
    """Landing data for the signed-in user's dashboard."""
    user = await store.find_by_id(user_id)
    if user is None:
        raise NotFoundError()
    return {
        "message": f"Welcome, {user.full_name}",
        "user": public_profile(user),
    }
