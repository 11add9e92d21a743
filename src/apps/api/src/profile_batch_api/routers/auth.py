"""Profile API credential endpoints."""
import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from profile_batch_api.services import get_owner_id
from profile_batch_core.jobs import ensure_user, update_user_tokens

router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger()


class TokenUpdate(BaseModel):
    """Credential obtained from the provider's OAuth flow."""

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    token_expiry: str | None = None


@router.get("/status")
def auth_status(owner_id: int = Depends(get_owner_id)):
    """Whether the owner has a stored profile API credential."""
    user = ensure_user(owner_id)
    return {
        "is_authenticated": True,
        "user": {
            "username": user["username"],
            "profile_api_connected": bool(user.get("access_token")),
            "token_expiry": user.get("token_expiry"),
        },
    }


@router.put("/token")
def store_token(body: TokenUpdate, owner_id: int = Depends(get_owner_id)):
    """Store the owner's access token for the profile API."""
    update_user_tokens(owner_id, body.access_token, body.refresh_token, body.token_expiry)
    logger.info("access_token_stored", owner_id=owner_id)
    return {"profile_api_connected": True}


@router.delete("/token")
def clear_token(owner_id: int = Depends(get_owner_id)):
    """Forget the owner's access token."""
    update_user_tokens(owner_id, None)
    logger.info("access_token_cleared", owner_id=owner_id)
    return {"profile_api_connected": False}
