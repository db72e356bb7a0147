from decimal import Decimal

from sqlalchemy import String, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.extensions import db
from catalog.models.base import TimestampMixin
from catalog.models.enums import ProductStatus


class Product(TimestampMixin, db.Model):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(String(1000))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    jan_code: Mapped[str | None] = mapped_column(String(13), unique=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ProductStatus.PRE_SALE.value
    )

    category_links = relationship(
        "ProductCategory",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def status_enum(self) -> ProductStatus:
        return ProductStatus(self.status)

    @property
    def category_ids(self) -> list[int]:
        return sorted(link.category_id for link in self.category_links)

    def __repr__(self):
        return f"<Product {self.name}>"
