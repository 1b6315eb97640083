from typing import Literal
from pydantic import BaseModel, EmailStr, Field, field_validator


class SellerRegisterRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    mobile_number: str = Field(min_length=10, max_length=15, pattern=r"^\+?\d+$")
    shop_name: str = Field(min_length=1, max_length=150)
    shop_address: str = Field(min_length=1)
    shop_category: Literal["Men", "Women", "Kids"]
    gst_number: str = Field("", max_length=20)


class CustomerRegisterRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class VerifyOtpRequest(BaseModel):
    code: str = Field(min_length=6, max_length=6)


class EmailRequest(BaseModel):
    email: EmailStr


class EmailExists(BaseModel):
    exists: bool


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=6, max_length=128)


class ResetPasswordConfirm(BaseModel):
    email: EmailStr
    code: str = Field(min_length=6, max_length=6)
    new_password: str = Field(min_length=6, max_length=128)


class RefreshTokenRequest(BaseModel):
    refresh_token: str
