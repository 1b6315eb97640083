"""
Lifecycle events handed to the notification fan-out.

Field names are serialized in camelCase because browser clients consume them
directly off the WebSocket.
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OrderEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(serialization_alias="orderId")
    order_number: str = Field(serialization_alias="orderNumber")
    seller_id: int = Field(serialization_alias="sellerId")
    timestamp: datetime

    def to_message(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class OrderCreated(OrderEvent):
    event: Literal["order.created"] = "order.created"
    total_price: Decimal = Field(serialization_alias="totalPrice")


class OrderStatusChanged(OrderEvent):
    event: Literal["order.status_changed"] = "order.status_changed"
    old_status: str = Field(serialization_alias="oldStatus")
    new_status: str = Field(serialization_alias="newStatus")
