from pydantic import BaseModel, EmailStr
from datetime import datetime
from typing import Literal

class UserCreate(BaseModel):
    email: EmailStr
    username: str
    password: str
    full_name: str | None = None
    role: Literal["manager", "parent"] = "parent"

class UserLogin(BaseModel):
    identifier: str    # email o username
    password: str

class UserOut(BaseModel):
    id: int
    email: EmailStr
    username: str
    full_name: str | None = None
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True
