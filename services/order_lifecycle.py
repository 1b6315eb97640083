"""
Order lifecycle: the status state machine and the seller-facing operations
on orders.

    Pending -> Processing -> Shipped -> Delivered
       |
       +-----> Cancelled

Delivered and Cancelled are terminal. Only the seller that owns an order may
move it. A status change is a single compare-and-set UPDATE keyed on the
status we read, so two concurrent requests cannot both win.
"""
import logging
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload

from core.config import settings
from core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from models.order import Order, OrderStatus
from schemas.events import OrderEvent, OrderStatusChanged
from services import notifications

logger = logging.getLogger(__name__)

Publish = Callable[[OrderEvent], None]

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(s for s, nxt in TRANSITIONS.items() if not nxt)

CENTS = Decimal("0.01")


def parse_status(value: OrderStatus | str) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Invalid status '{value}'. Must be one of: {allowed}")


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in TRANSITIONS[current]


def allowed_next(current: OrderStatus) -> List[OrderStatus]:
    return sorted(TRANSITIONS[current], key=list(OrderStatus).index)


def _invalid_transition(current: OrderStatus, requested: OrderStatus) -> InvalidTransition:
    return InvalidTransition(
        current.value,
        requested.value,
        [s.value for s in allowed_next(current)],
        terminal=current in TERMINAL_STATUSES,
    )


def _load_owned_order(db: Session, order_id: int, actor_seller_id: int) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.id == order_id)
        .one_or_none()
    )
    if not order:
        raise NotFound("Order not found")
    if order.seller_id != actor_seller_id:
        logger.warning("Seller %s attempted to access order %s owned by seller %s",
                       actor_seller_id, order_id, order.seller_id)
        raise Forbidden("Not authorized to modify this order")
    return order


def get_order_for_seller(db: Session, order_id: int, actor_seller_id: int) -> Order:
    return _load_owned_order(db, order_id, actor_seller_id)


def request_status_change(
    db: Session,
    order_id: int,
    requested_status: OrderStatus | str,
    actor_seller_id: int,
    publish: Optional[Publish] = None,
) -> Order:
    requested = parse_status(requested_status)
    order = _load_owned_order(db, order_id, actor_seller_id)
    current = order.status

    if not can_transition(current, requested):
        raise _invalid_transition(current, requested)

    now = datetime.utcnow()
    result = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == current)
        .values(status=requested, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Someone else moved the order between our read and write
        db.rollback()
        db.refresh(order)
        logger.info("Lost status race on order %s: wanted %s -> %s, found %s",
                    order.order_number, current.value, requested.value, order.status.value)
        raise _invalid_transition(order.status, requested)
    db.commit()
    db.refresh(order)

    logger.info("Order %s moved %s -> %s by seller %s",
                order.order_number, current.value, requested.value, actor_seller_id)

    notifications.emit(
        OrderStatusChanged(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=order.seller_id,
            old_status=current.value,
            new_status=requested.value,
            timestamp=now,
        ),
        publish,
    )
    return order


def mark_order_read(db: Session, order_id: int, actor_seller_id: int) -> Order:
    order = _load_owned_order(db, order_id, actor_seller_id)
    if not order.is_read:
        order.is_read = True
        order.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(order)
    return order


def list_orders_for_seller(
    db: Session,
    seller_id: int,
    status_filter: OrderStatus | str | None = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> Tuple[List[Order], int]:
    """Newest first. A page past the end is empty, not an error."""
    page_size = settings.DEFAULT_PAGE_SIZE if page_size is None else page_size
    if not isinstance(page, int) or isinstance(page, bool) or page < 1:
        raise ValidationError("page must be a positive integer")
    if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size < 1:
        raise ValidationError("page_size must be a positive integer")
    if page_size > settings.MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must not exceed {settings.MAX_PAGE_SIZE}")

    qs = db.query(Order).filter(Order.seller_id == seller_id)
    # An empty filter, as sent by ?status=, means all statuses
    if status_filter not in (None, ""):
        qs = qs.filter(Order.status == parse_status(status_filter))

    total = qs.count()
    items = (
        qs.options(selectinload(Order.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return items, total


def today_bounds(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> Tuple[datetime, datetime]:
    """Start and end of "today" in the stats timezone, as naive UTC datetimes."""
    tz = ZoneInfo(tz_name or settings.STATS_TIMEZONE)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_midnight = datetime.combine(now.astimezone(tz).date(), time.min, tzinfo=tz)
    start = local_midnight.astimezone(timezone.utc).replace(tzinfo=None)
    end = (local_midnight + timedelta(days=1)).astimezone(timezone.utc).replace(tzinfo=None)
    return start, end


def get_seller_statistics(db: Session, seller_id: int, now: Optional[datetime] = None) -> dict:
    status_counts = {s.value: 0 for s in OrderStatus}
    rows = (
        db.query(Order.status, func.count(Order.id))
        .filter(Order.seller_id == seller_id)
        .group_by(Order.status)
        .all()
    )
    for status, count in rows:
        status_counts[OrderStatus(status).value] = count

    start, end = today_bounds(now)
    today_orders_count = db.query(func.count(Order.id)).filter(
        Order.seller_id == seller_id,
        Order.created_at >= start,
        Order.created_at < end,
    ).scalar()

    unread_count = db.query(func.count(Order.id)).filter(
        Order.seller_id == seller_id,
        Order.is_read.is_(False),
    ).scalar()

    revenue = db.query(func.coalesce(func.sum(Order.total_price), 0)).filter(
        Order.seller_id == seller_id,
        Order.status != OrderStatus.CANCELLED,
    ).scalar()

    return {
        "status_counts": status_counts,
        "today_orders_count": today_orders_count or 0,
        "unread_count": unread_count or 0,
        "total_revenue": Decimal(str(revenue or 0)).quantize(CENTS),
    }
