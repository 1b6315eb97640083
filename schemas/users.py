from pydantic import BaseModel, EmailStr
from typing import Optional

from schemas.order import ShippingAddress


class CustomerOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: EmailStr
    address: Optional[ShippingAddress] = None

    class Config:
        from_attributes = True
