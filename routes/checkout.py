from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from core.tenancy import get_current_customer
from models.customer import Customer
from schemas.order import CheckoutRequest, OrderOut
from services.checkout import place_order

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/", response_model=OrderOut, status_code=201)
def checkout(data: CheckoutRequest, customer: Customer = Depends(get_current_customer), db: Session = Depends(get_db)):
    address = data.shipping_address.model_dump() if data.shipping_address else None
    return place_order(db, customer, data.items, data.payment_method, address)
