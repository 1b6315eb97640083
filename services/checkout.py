"""
Order creation. Every order belongs to exactly one seller: the one whose
products are in it.

Stock is decremented in the same transaction as the order insert with a
guarded UPDATE per variant, so concurrent checkouts cannot oversell.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from core.config import settings
from core.exceptions import NotFound, OutOfStock, ValidationError
from models.customer import Customer
from models.order import Order, OrderStatus
from models.order_item import OrderItem
from models.product import Product, ProductVariant
from models.seller import Seller
from schemas.events import OrderCreated
from schemas.order import OrderItemIn
from services import notifications
from services.email import send_templated_email
from services.order_lifecycle import Publish

logger = logging.getLogger(__name__)


def _to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_order_number(order_id: int, created_at: datetime, prefix: Optional[str] = None) -> str:
    prefix = settings.ORDER_NUMBER_PREFIX if prefix is None else prefix
    return f"{prefix}{created_at:%Y%m%d}-{order_id:06d}"


def _resolve_shipping_address(customer: Customer, shipping_address: Optional[dict]) -> dict:
    address = shipping_address or customer.address
    if not address:
        raise ValidationError("A shipping address is required")
    # Copy so later edits to the customer's saved address never reach the order
    return dict(address)


def place_order(
    db: Session,
    customer: Customer,
    items: Iterable[OrderItemIn],
    payment_method: str,
    shipping_address: Optional[dict] = None,
    publish: Optional[Publish] = None,
) -> Order:
    items = list(items)
    if not items:
        raise ValidationError("Order must contain items")
    if any(item.quantity < 1 for item in items):
        raise ValidationError("Quantity must be at least 1")
    if not payment_method or not payment_method.strip():
        raise ValidationError("Payment method is required")

    # Fetch all products in a single query
    product_ids = {item.product_id for item in items}
    products_map = {
        p.id: p
        for p in db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.id.in_(product_ids), Product.is_active.is_(True))
        .all()
    }
    if len(products_map) != len(product_ids):
        raise NotFound("One or more products not found")

    seller_ids = {p.seller_id for p in products_map.values()}
    if len(seller_ids) != 1:
        raise ValidationError("All items in an order must come from the same seller")
    seller_id = seller_ids.pop()

    address = _resolve_shipping_address(customer, shipping_address)

    now = datetime.utcnow()
    order = Order(
        customer_id=customer.id,
        seller_id=seller_id,
        status=OrderStatus.PENDING,
        total_price=Decimal("0.00"),
        payment_method=payment_method.strip(),
        shipping_address=address,
        is_read=False,
        created_at=now,
        updated_at=now,
    )

    try:
        db.add(order)
        db.flush()
        order.order_number = format_order_number(order.id, now)

        total = Decimal("0.00")
        for item in items:
            product = products_map[item.product_id]
            variant = next(
                (v for v in product.variants if v.size == item.size and v.color == item.color),
                None,
            )
            if variant is None:
                raise NotFound(f"{product.name} is not available in size {item.size} / {item.color}")

            result = db.execute(
                update(ProductVariant)
                .where(ProductVariant.id == variant.id, ProductVariant.stock >= item.quantity)
                .values(stock=ProductVariant.stock - item.quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise OutOfStock(f"Not enough stock for {product.name} ({item.size} / {item.color})")

            unit_price = _to_decimal(product.price)
            subtotal = unit_price * item.quantity
            total += subtotal
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    product_name=product.name,
                    product_image=product.image_url,
                    size=item.size,
                    color=item.color,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=subtotal,
                )
            )

        order.total_price = total
        db.commit()
    except Exception:
        db.rollback()
        raise

    # Variant stock was changed behind the ORM's back
    for product in products_map.values():
        for variant in product.variants:
            db.expire(variant)
    db.refresh(order)
    logger.info("Order %s placed by customer %s for seller %s (total %s)",
                order.order_number, customer.id, seller_id, order.total_price)

    notifications.emit(
        OrderCreated(
            order_id=order.id,
            order_number=order.order_number,
            seller_id=seller_id,
            total_price=order.total_price,
            timestamp=now,
        ),
        publish,
    )
    _notify_seller_by_email(db, order)
    return order


def _notify_seller_by_email(db: Session, order: Order) -> None:
    seller = db.get(Seller, order.seller_id)
    if seller is None:
        return
    try:
        send_templated_email(
            seller.email,
            f"New order {order.order_number}",
            "emails/new_order.txt",
            {
                "first_name": seller.first_name,
                "order_number": order.order_number,
                "total_price": f"{order.total_price:.2f}",
                "item_count": sum(i.quantity for i in order.items),
            },
        )
    except Exception:
        logger.exception("Could not queue new-order email for order %s", order.order_number)
