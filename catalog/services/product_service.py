from decimal import Decimal
from typing import Iterable

from flask import current_app

from catalog.errors import CategoryNotFound
from catalog.extensions import db
from catalog.models.category import Category
from catalog.models.enums import ProductStatus
from catalog.models.product import Product
from catalog.models.product_category import ProductCategory


def _require_categories(category_ids: Iterable[int]) -> list[int]:
    wanted = sorted(set(category_ids))
    if not wanted:
        return []
    found = {
        row.id for row in db.session.query(Category.id).filter(Category.id.in_(wanted))
    }
    for category_id in wanted:
        if category_id not in found:
            raise CategoryNotFound(category_id)
    return wanted


def create_product(
    name: str,
    price: Decimal,
    *,
    description: str | None = None,
    jan_code: str | None = None,
    status: ProductStatus = ProductStatus.PRE_SALE,
    category_ids: Iterable[int] = (),
) -> Product:
    product = Product(
        name=name,
        price=price,
        description=description,
        jan_code=jan_code,
        status=status.value,
    )
    product.category_links = [
        ProductCategory(category_id=category_id)
        for category_id in _require_categories(category_ids)
    ]
    db.session.add(product)
    db.session.commit()
    current_app.logger.info(
        "Product %s created in categories %s", product.id, product.category_ids
    )
    return product


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def set_product_categories(
    product_id: int, category_ids: Iterable[int]
) -> Product | None:
    product = db.session.get(Product, product_id)
    if not product:
        return None

    wanted = set(_require_categories(category_ids))
    for link in list(product.category_links):
        if link.category_id not in wanted:
            product.category_links.remove(link)
    existing = {link.category_id for link in product.category_links}
    for category_id in sorted(wanted - existing):
        product.category_links.append(ProductCategory(category_id=category_id))

    db.session.commit()
    return product


def delete_product(product_id: int) -> bool:
    product = db.session.get(Product, product_id)
    if not product:
        return False
    # Category links go with the product
    db.session.delete(product)
    db.session.commit()
    current_app.logger.info("Product %s deleted", product_id)
    return True
