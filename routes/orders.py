from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.config import settings
from core.db import get_db
from core.tenancy import get_current_seller
from models.seller import Seller
from schemas.order import OrderOut, OrderPage, SellerStatistics, StatusChangeRequest
from services import order_lifecycle

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=OrderPage)
def list_orders(
    status: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, alias="pageSize"),
    seller: Seller = Depends(get_current_seller),
    db: Session = Depends(get_db),
):
    items, total = order_lifecycle.list_orders_for_seller(db, seller.id, status, page, page_size)
    return OrderPage(
        items=[OrderOut.model_validate(o) for o in items],
        page=page,
        page_size=page_size,
        total=total,
    )


@router.get("/stats", response_model=SellerStatistics)
def order_stats(seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    return order_lifecycle.get_seller_statistics(db, seller.id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    return order_lifecycle.get_order_for_seller(db, order_id, seller.id)


@router.post("/{order_id}/status", response_model=OrderOut)
def change_status(
    order_id: int,
    data: StatusChangeRequest,
    seller: Seller = Depends(get_current_seller),
    db: Session = Depends(get_db),
):
    return order_lifecycle.request_status_change(db, order_id, data.status, seller.id)


@router.post("/{order_id}/read", response_model=OrderOut)
def mark_read(order_id: int, seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    return order_lifecycle.mark_order_read(db, order_id, seller.id)
