import jwt
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import get_current_seller
from models.seller import Seller
from schemas.auth import (
    SellerRegisterRequest,
    LoginRequest,
    TokenPair,
    VerifyOtpRequest,
    EmailRequest,
    EmailExists,
    ChangePasswordRequest,
    ResetPasswordConfirm,
    RefreshTokenRequest,
)
from schemas.profile import SellerOut
from security.password import hash_password, needs_rehash, verify_password
from security import jwt as jwt_utils
from services.otp import (
    OtpRateLimited,
    RESET_PURPOSE,
    VERIFY_PURPOSE,
    send_code,
    verify_code,
    verify_code_without_email,
)
from services.email import send_templated_email

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_pair(seller: Seller) -> TokenPair:
    return TokenPair(
        access_token=jwt_utils.create_access_token(str(seller.id), jwt_utils.SELLER_ROLE),
        refresh_token=jwt_utils.create_refresh_token(str(seller.id), jwt_utils.SELLER_ROLE),
    )


@router.post("/register", response_model=SellerOut, status_code=201)
def register(data: SellerRegisterRequest, db: Session = Depends(get_db)):
    email = data.email.lower()
    if db.query(Seller).filter(Seller.email == email).one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")
    if db.query(Seller).filter(Seller.mobile_number == data.mobile_number).one_or_none():
        raise HTTPException(status_code=400, detail="Mobile number already registered")

    seller = Seller(
        first_name=data.first_name.strip(),
        email=email,
        mobile_number=data.mobile_number,
        password_hash=hash_password(data.password),
        shop_name=data.shop_name.strip(),
        shop_address=data.shop_address.strip(),
        shop_category=data.shop_category,
        gst_number=data.gst_number.strip().upper(),
        is_verified=False,
    )
    db.add(seller)
    db.commit()
    db.refresh(seller)
    send_code(seller, VERIFY_PURPOSE)
    return seller


@router.post("/login", response_model=TokenPair)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    seller = db.query(Seller).filter(Seller.email == data.email).one_or_none()
    if not seller or not verify_password(data.password, seller.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if not seller.is_verified:
        raise HTTPException(status_code=403, detail="Account not verified")
    if not seller.is_active:
        raise HTTPException(status_code=403, detail="Seller account is inactive")
    if needs_rehash(seller.password_hash):
        seller.password_hash = hash_password(data.password)
        db.commit()
    return _token_pair(seller)


@router.post("/verify-otp")
def verify_otp(data: VerifyOtpRequest, db: Session = Depends(get_db)):
    ok, email = verify_code_without_email(data.code, VERIFY_PURPOSE)
    if not ok:
        raise HTTPException(status_code=400, detail="Invalid or expired code")
    seller = db.query(Seller).filter(Seller.email == email.lower()).one_or_none()
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")

    seller.is_verified = True
    db.commit()
    send_templated_email(
        seller.email,
        "Email verified",
        "emails/verification_success.txt",
        {"first_name": seller.first_name},
    )
    return {"detail": "Verified"}


@router.post("/resend-otp")
def resend_otp(data: EmailRequest, db: Session = Depends(get_db)):
    seller = db.query(Seller).filter(Seller.email == data.email.lower()).one_or_none()
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    if seller.is_verified:
        raise HTTPException(status_code=400, detail="Account already verified")
    try:
        send_code(seller, VERIFY_PURPOSE)
    except OtpRateLimited as e:
        raise HTTPException(status_code=429, detail=str(e))
    return {"detail": "OTP sent"}


@router.post("/check-email", response_model=EmailExists)
def check_email(data: EmailRequest, db: Session = Depends(get_db)):
    exists = db.query(Seller.id).filter(Seller.email == data.email.lower()).first() is not None
    return EmailExists(exists=exists)


@router.post("/change-password")
def change_password(
    data: ChangePasswordRequest,
    current_seller: Seller = Depends(get_current_seller),
    db: Session = Depends(get_db),
):
    if not verify_password(data.old_password, current_seller.password_hash):
        raise HTTPException(status_code=400, detail="Old password is incorrect")
    current_seller.password_hash = hash_password(data.new_password)
    db.commit()
    return {"detail": "Password changed"}


@router.post("/reset-password/request")
def reset_password_request(data: EmailRequest, db: Session = Depends(get_db)):
    seller = db.query(Seller).filter(Seller.email == data.email.lower()).one_or_none()
    if seller:
        try:
            send_code(seller, RESET_PURPOSE)
        except OtpRateLimited as e:
            raise HTTPException(status_code=429, detail=str(e))
    return {"detail": "If the email exists, a code has been sent"}


@router.post("/reset-password/confirm")
def reset_password_confirm(data: ResetPasswordConfirm, db: Session = Depends(get_db)):
    email = data.email.lower()
    seller = db.query(Seller).filter(Seller.email == email).one_or_none()
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    if not verify_code(email, data.code, RESET_PURPOSE):
        raise HTTPException(status_code=400, detail="Invalid or expired code")
    seller.password_hash = hash_password(data.new_password)
    db.commit()
    send_templated_email(
        seller.email,
        "Password reset successful",
        "emails/password_reset_success.txt",
        {"first_name": seller.first_name},
    )
    return {"detail": "Password reset"}


@router.post("/refresh-token", response_model=TokenPair)
def refresh_token(data: RefreshTokenRequest, db: Session = Depends(get_db)):
    try:
        payload = jwt_utils.decode_refresh(data.refresh_token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if payload.get("role") != jwt_utils.SELLER_ROLE:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    seller = db.query(Seller).filter(Seller.id == int(payload.get("sub"))).one_or_none()
    if not seller:
        raise HTTPException(status_code=404, detail="Seller not found")
    return _token_pair(seller)
