from sqlalchemy import Boolean, Column, Integer, ForeignKey, Numeric, String

from storefront.data.database import Base


class CartItemModel(Base):
    """Account-scoped cart line, stored as a full snapshot so the unit price stays frozen."""

    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    food_item_id = Column(Integer, nullable=False)

    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    image_url = Column(String, nullable=False, default="")
    category_id = Column(Integer, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    size_option_id = Column(Integer, nullable=True)
    size_name = Column(String, nullable=True)
    size_multiplier = Column(Numeric(6, 3), nullable=False, default=1)
