"""
Login and account endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pricemyfloor.core.dependencies import get_current_user, get_db
from pricemyfloor.database.models import User
from pricemyfloor.schemas.auth import ChangePasswordRequest, LoginRequest, TokenResponse, UserProfile
from pricemyfloor.services.auth_service import AuthService, serialize_profile
from pricemyfloor.utils.exceptions import FunctionError
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/auth")


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        return AuthService(db).login(body.email, body.password)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error during login:[/red] {e}")
        raise FunctionError(str(e))


@router.get("/me", response_model=UserProfile)
async def me(user: User = Depends(get_current_user)):
    return serialize_profile(user)


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the password; clears the temporary-password flag"""
    try:
        AuthService(db).change_password(user, body.current_password, body.new_password)
        return {"success": True, "message": "Password updated"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error changing password:[/red] {e}")
        raise FunctionError(str(e))
