#import all models so SQLAlchemy registers them on Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel, OrderItemModel, OrderStatusHistoryModel

__all__ = [
    "UserModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "OrderStatusHistoryModel",
]
