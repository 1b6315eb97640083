# Import models so that SQLAlchemy metadata includes them on app startup
from .seller import Seller  # noqa: F401
from .customer import Customer  # noqa: F401
from .product import Product, ProductVariant  # noqa: F401
from .order import Order, OrderStatus  # noqa: F401
from .order_item import OrderItem  # noqa: F401
