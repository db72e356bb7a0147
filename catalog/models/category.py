from sqlalchemy import String, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.extensions import db
from catalog.models.base import TimestampMixin


class Category(TimestampMixin, db.Model):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    description: Mapped[str | None] = mapped_column(String(500))
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"), index=True
    )
    level: Mapped[int] = mapped_column(Integer, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    # Only parent_id is stored; children are looked up through the snapshot index
    parent = relationship("Category", remote_side="Category.id")
    product_links = relationship(
        "ProductCategory", back_populates="category", lazy="dynamic",
        passive_deletes="all",
    )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self):
        return f"<Category {self.name}>"
