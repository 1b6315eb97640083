from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


SHOP_CATEGORIES = ("Men", "Women", "Kids")
BANK_ACCOUNT_TYPES = ("savings", "current", "business", "")


class Seller(Base):
    __tablename__ = "sellers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    mobile_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))

    # Shop profile
    shop_name: Mapped[str] = mapped_column(String(150), index=True)
    shop_address: Mapped[str] = mapped_column(Text)
    shop_category: Mapped[str] = mapped_column(String(10))  # Men, Women, Kids
    gst_number: Mapped[str] = mapped_column(String(20), default="")
    phone_main: Mapped[str] = mapped_column(String(20), default="")
    phone_alternate: Mapped[str] = mapped_column(String(20), default="")
    open_time: Mapped[str] = mapped_column(String(5), default="09:00")
    close_time: Mapped[str] = mapped_column(String(5), default="18:00")
    working_days: Mapped[str] = mapped_column(String(50), default="monday-saturday")
    description: Mapped[str] = mapped_column(String(500), default="")
    main_image: Mapped[str] = mapped_column(String(500), default="")
    images: Mapped[list] = mapped_column(JSON, default=list)

    # Payout details
    account_holder_name: Mapped[str] = mapped_column(String(150), default="")
    account_number: Mapped[str] = mapped_column(String(34), default="")
    ifsc_code: Mapped[str] = mapped_column(String(11), default="")
    bank_name: Mapped[str] = mapped_column(String(150), default="")
    account_type: Mapped[str] = mapped_column(String(10), default="")

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def main_shop_image(self) -> str:
        if self.main_image:
            return self.main_image
        return self.images[0] if self.images else ""
