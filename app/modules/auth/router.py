from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, Principal
from app.modules.admin.schemas import UserOut
from app.modules.auth.schemas import LoginRequest, TokenOut, ChangePassword, ForgotPassword, ResetPassword
from app.modules.auth.service import AuthService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)

@router.post("/login", response_model=TokenOut)
async def login(payload: LoginRequest, service: AuthService = Depends(svc)):
    res = await service.login(payload.email, payload.password)
    if not res:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token, user = res
    return TokenOut(token=token, user=UserOut.model_validate(user))

@router.get("/me", response_model=UserOut)
async def me(principal: Principal = Depends(get_principal), service: AuthService = Depends(svc)):
    user = await service.me(principal.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.post("/change-password")
async def change_password(payload: ChangePassword, principal: Principal = Depends(get_principal), service: AuthService = Depends(svc)):
    if not await service.change_password(principal.user_id, payload.current_password, payload.new_password):
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "Password changed"}

@router.post("/forgot-password")
async def forgot_password(payload: ForgotPassword, service: AuthService = Depends(svc)):
    await service.request_password_reset(payload.email)
    return {"message": "If the account exists, a reset link has been sent"}

@router.post("/reset-password")
async def reset_password(payload: ResetPassword, service: AuthService = Depends(svc)):
    await service.reset_password(payload.token, payload.new_password)
    return {"message": "Password has been reset"}
