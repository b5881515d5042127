from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.ids import new_id


class CartItemModel(Base):
    """Server-side mirror of an authenticated user's cart, one row per (user, variant, size)."""

    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), nullable=False, index=True)
    product_variant_id = Column(
        String(36), ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False
    )
    selected_size = Column(String(32), nullable=False, default="")

    quantity = Column(Integer, nullable=False)

    variant = relationship("ProductVariantModel")

    __table_args__ = (
        UniqueConstraint("user_id", "product_variant_id", "selected_size", name="u_cart_user_variant_size"),
    )
