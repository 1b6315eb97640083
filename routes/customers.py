from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, selectinload

from core.db import get_db
from core.tenancy import get_current_customer
from models.customer import Customer
from models.order import Order
from schemas.auth import CustomerRegisterRequest, LoginRequest, TokenPair
from schemas.order import OrderOut, ShippingAddress
from schemas.users import CustomerOut
from security.password import hash_password, verify_password
from security import jwt as jwt_utils

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("/register", response_model=CustomerOut, status_code=201)
def register(data: CustomerRegisterRequest, db: Session = Depends(get_db)):
    email = data.email.lower()
    if db.query(Customer).filter(Customer.email == email).one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")
    customer = Customer(
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        email=email,
        password_hash=hash_password(data.password),
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@router.post("/login", response_model=TokenPair)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    customer = db.query(Customer).filter(Customer.email == data.email).one_or_none()
    if not customer or not verify_password(data.password, customer.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    return TokenPair(
        access_token=jwt_utils.create_access_token(str(customer.id), jwt_utils.CUSTOMER_ROLE),
        refresh_token=jwt_utils.create_refresh_token(str(customer.id), jwt_utils.CUSTOMER_ROLE),
    )


@router.get("/me/address", response_model=ShippingAddress | None)
def get_address(customer: Customer = Depends(get_current_customer)):
    return customer.address


@router.put("/me/address", response_model=ShippingAddress)
def update_address(
    address: ShippingAddress,
    customer: Customer = Depends(get_current_customer),
    db: Session = Depends(get_db),
):
    # Replace the whole dict; existing orders keep their own snapshot
    customer.address = address.model_dump()
    db.commit()
    db.refresh(customer)
    return customer.address


@router.get("/me/orders", response_model=List[OrderOut])
def my_orders(customer: Customer = Depends(get_current_customer), db: Session = Depends(get_db)):
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.customer_id == customer.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
