import enum
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, Numeric, Boolean, JSON, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    order_number: Mapped[str | None] = mapped_column(String(40), unique=True, index=True, nullable=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="RESTRICT"), index=True)
    seller_id: Mapped[int] = mapped_column(ForeignKey("sellers.id", ondelete="RESTRICT"), index=True)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        default=OrderStatus.PENDING,
        index=True,
    )
    total_price: Mapped[float] = mapped_column(Numeric(12, 2))
    payment_method: Mapped[str] = mapped_column(String(50))
    shipping_address: Mapped[dict] = mapped_column(JSON)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer")
    seller = relationship("Seller")
    items = relationship("OrderItem", cascade="all, delete-orphan", back_populates="order", order_by="OrderItem.id")
