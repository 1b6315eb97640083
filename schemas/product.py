from pydantic import BaseModel, Field
from typing import List, Optional


class VariantIn(BaseModel):
    size: str = Field(min_length=1, max_length=20)
    color: str = Field(min_length=1, max_length=30)
    stock: int = Field(0, ge=0)


class VariantOut(BaseModel):
    id: int
    size: str
    color: str
    stock: int

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=220)
    price: float = Field(gt=0)
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    variants: List[VariantIn] = Field(min_length=1)


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    seller_id: int
    name: str
    slug: str
    price: float
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    total_stock: int
    variants: List[VariantOut]

    class Config:
        from_attributes = True
