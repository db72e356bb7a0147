from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.extensions import db
from catalog.models.base import CreatedAtMixin


class ProductCategory(CreatedAtMixin, db.Model):
    """Join row between a product and one of its categories.

    Removed together with its product; a category that still has join rows
    cannot be removed.
    """

    __tablename__ = "product_categories"

    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"), primary_key=True, index=True
    )

    product = relationship("Product", back_populates="category_links")
    category = relationship("Category", back_populates="product_links")

    def __repr__(self):
        return f"<ProductCategory {self.product_id}:{self.category_id}>"
