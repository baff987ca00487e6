from pydantic import BaseModel, EmailStr
from typing import List, Optional

from app.modules.access.schemas import AllowedModule


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class SessionResponse(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: str
    role: str
    company_id: Optional[str] = None
    active: bool = True
    permissions: List[str]
    modules: List[AllowedModule]
