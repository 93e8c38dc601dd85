from typing import List
from pydantic import BaseModel

from .users import UserPrivate


class StrikeRequest(BaseModel):
    action: str = ""


class BanRequest(BaseModel):
    action: str = ""


class CreditGrantRequest(BaseModel):
    amount: int = 0


class AdminUserListResponse(BaseModel):
    users: List[UserPrivate]


class StrikeResponse(BaseModel):
    user: UserPrivate
    auto_banned: bool = False


class AdminUserResponse(BaseModel):
    user: UserPrivate
