from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class SellerProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    shop_name: Optional[str] = Field(None, min_length=1, max_length=150)
    shop_address: Optional[str] = Field(None, min_length=1)
    shop_category: Optional[Literal["Men", "Women", "Kids"]] = None
    gst_number: Optional[str] = Field(None, max_length=20)
    phone_main: Optional[str] = Field(None, max_length=20)
    phone_alternate: Optional[str] = Field(None, max_length=20)
    open_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    close_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    working_days: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    main_image: Optional[str] = Field(None, max_length=500)
    images: Optional[List[str]] = Field(None, max_length=10)
    account_holder_name: Optional[str] = Field(None, max_length=150)
    account_number: Optional[str] = Field(None, max_length=34)
    ifsc_code: Optional[str] = Field(None, max_length=11)
    bank_name: Optional[str] = Field(None, max_length=150)
    account_type: Optional[Literal["savings", "current", "business", ""]] = None

    @field_validator("ifsc_code")
    @classmethod
    def upper_ifsc(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class SellerOut(BaseModel):
    id: int
    first_name: str
    email: EmailStr
    mobile_number: str
    shop_name: str
    shop_category: str
    is_verified: bool

    class Config:
        from_attributes = True


class SellerProfileResponse(SellerOut):
    shop_address: str
    gst_number: str
    phone_main: str
    phone_alternate: str
    open_time: str
    close_time: str
    working_days: str
    description: str
    main_image: str
    images: List[str]
    account_holder_name: str
    account_number: str
    ifsc_code: str
    bank_name: str
    account_type: str
    created_at: datetime
    updated_at: datetime
