from catalog.models.category import Category
from catalog.models.product import Product
from catalog.models.product_category import ProductCategory

__all__ = [
    "Category",
    "Product",
    "ProductCategory",
]
