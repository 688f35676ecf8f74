# File: clearcity/schemas/auth.py

from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from clearcity.schemas.user import UserOut

# Presence of name/email/password is checked in the router so the client
# gets the same "All fields are required" message for any of them.
class RegisterIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, max_length=512)
    location: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class LoginIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = None
    password: Optional[str] = None

class AuthOut(BaseModel):
    token: str
    user: UserOut
