from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from kindred.api.deps import get_accounts, get_current_user, get_matching
from kindred.models.user import User
from kindred.services.accounts import FORGOT_PASSWORD_MESSAGE, AccountService
from kindred.services.matching import MatchService

router = APIRouter(prefix="/api/users", tags=["users"])


class Credentials(BaseModel):
    email: EmailStr
    password: str


class EmailUpdate(BaseModel):
    email: EmailStr | None = None


class PasswordChange(BaseModel):
    currentPassword: str
    newPassword: str


class ForgotPassword(BaseModel):
    email: EmailStr


class ResetPassword(BaseModel):
    token: str = Field(..., min_length=1)
    password: str


@router.post("/register", status_code=201)
async def register(payload: Credentials, accounts: AccountService = Depends(get_accounts)) -> dict:
    user, token = await accounts.register(payload.email, payload.password)
    return {"message": "User created successfully", "token": token, "user": user.public()}


@router.post("/login")
async def login(payload: Credentials, accounts: AccountService = Depends(get_accounts)) -> dict:
    user, token = await accounts.login(payload.email, payload.password)
    return {"message": "Login successful", "token": token, "user": user.public()}


@router.get("/me")
async def me(user: User = Depends(get_current_user), accounts: AccountService = Depends(get_accounts)) -> dict:
    data = user.details()
    data["profile"] = None
    if user.profile_id:
        profile = await accounts.profiles.get(user.profile_id)
        data["profile"] = profile.public() if profile else None
    return data


@router.put("/me")
async def update_me(
    payload: EmailUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    if payload.email:
        user = await accounts.update_email(user.id, payload.email)
    return {"message": "User updated successfully", "user": user.public()}


@router.put("/password")
async def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    await accounts.change_password(user.id, payload.currentPassword, payload.newPassword)
    return {"message": "Password updated successfully"}


@router.delete("/me")
async def delete_me(user: User = Depends(get_current_user), accounts: AccountService = Depends(get_accounts)) -> dict:
    await accounts.delete(user.id)
    return {"message": "Account deleted successfully"}


@router.get("/stats")
async def user_stats(user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)) -> dict:
    stats = await matching.stats(user.id)
    stats["hasProfile"] = bool(user.profile_id)
    return stats


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPassword, accounts: AccountService = Depends(get_accounts)) -> dict:
    await accounts.request_password_reset(payload.email)
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
async def reset_password(payload: ResetPassword, accounts: AccountService = Depends(get_accounts)) -> dict:
    await accounts.reset_password(payload.token, payload.password)
    return {"message": "Password has been reset successfully"}
