from pydantic import BaseModel, EmailStr, Field
from app.modules.admin.schemas import UserOut

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenOut(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut

class ChangePassword(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)

class ForgotPassword(BaseModel):
    email: EmailStr

class ResetPassword(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8)
