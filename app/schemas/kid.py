from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

from app.schemas.auth import UserSummary


class KidRead(BaseModel):
    id: int
    name: str
    email: str | None = None
    role: str
    avatar: str | None = None
    parent_phone: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    father_name: str | None = None
    mother_name: str | None = None
    is_verified: bool = False
    last_login: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class KidListRow(KidRead):
    status: str  # "Active" | "Inactive"
    submissions: int
    comics_read: int
    rank: int


class KidCheckRequest(BaseModel):
    parent_phone: str = Field(min_length=1, max_length=50)
    date_of_birth: date


class KidCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_phone: str = Field(min_length=1, max_length=50)
    date_of_birth: date
    confirm: bool = False


class KidSignupRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)


class KidSignupResponse(BaseModel):
    email: str
    message: str


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str = Field(min_length=6, max_length=6)


class CompleteProfileRequest(BaseModel):
    email: EmailStr
    father_name: str | None = None
    mother_name: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None


class KidTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    kid: KidRead


class KidLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    kid: UserSummary
