import logging

from fastapi import APIRouter, Depends

import crud
import schemas
from dependencies import get_current_admin, get_db, get_token_service
from security import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/admin-login", response_model=schemas.LoginResponse)
async def admin_login(
    login_data: schemas.AdminLogin,
    db=Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange admin credentials for an access/refresh token pair"""
    admin = await crud.authenticate_admin(db, login_data.email, login_data.password)

    # best-effort: a failed timestamp write must not block the login
    try:
        await crud.update_admin_last_login(db, admin["id"])
    except Exception as e:
        logger.error(f"❌ Could not record last login for admin {admin['id']}: {e}")

    logger.info(f"🔑 Admin {admin['id']} logged in")
    return {
        "success": True,
        "token": tokens.issue_access_token(admin["id"], admin["email"], admin.get("role") or "admin"),
        "refresh_token": tokens.issue_refresh_token(admin["id"]),
        "token_type": "bearer",
        "admin": admin,
    }


@router.post("/admin-register", response_model=schemas.AdminResponse, status_code=201)
async def admin_register(admin_data: schemas.AdminRegister, db=Depends(get_db)):
    admin = await crud.create_admin_user(db, admin_data.email, admin_data.password, admin_data.name)
    logger.info(f"👤 Admin {admin['id']} registered")
    return {"success": True, "admin": admin}


@router.post("/refresh-token", response_model=schemas.RefreshResponse)
async def refresh_token(
    body: schemas.RefreshRequest,
    db=Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    token = await tokens.redeem_refresh(body.refresh_token, db)
    return {"success": True, "token": token, "token_type": "bearer"}


@router.get("/admin/current", response_model=schemas.AdminResponse)
async def current_admin(admin: dict = Depends(get_current_admin)):
    return {"success": True, "admin": admin}
