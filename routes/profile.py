from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import get_current_seller
from models.seller import Seller
from schemas.profile import SellerProfileResponse, SellerProfileUpdate

router = APIRouter(prefix="/sellers", tags=["sellers"])


@router.get("/profile", response_model=SellerProfileResponse)
def get_profile(current_seller: Seller = Depends(get_current_seller)):
    """Get the signed-in seller's shop profile"""
    return current_seller


@router.put("/profile", response_model=SellerProfileResponse)
def update_profile(
    profile_data: SellerProfileUpdate,
    current_seller: Seller = Depends(get_current_seller),
    db: Session = Depends(get_db),
):
    """Update only the fields that are provided"""
    update_data = profile_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(current_seller, field, value.strip() if isinstance(value, str) else value)

    db.commit()
    db.refresh(current_seller)
    return current_seller
