class CatalogError(Exception):
    """Base class for faults raised by the catalog core."""


class CategoryNotFound(CatalogError):
    def __init__(self, category_id: int):
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class ProductNotFound(CatalogError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class CorruptHierarchy(CatalogError):
    """A bounded walk found a cycle or a missing ancestor in stored data."""

    def __init__(self, category_id: int, reason: str):
        super().__init__(f"Corrupt hierarchy at category {category_id}: {reason}")
        self.category_id = category_id
        self.reason = reason
