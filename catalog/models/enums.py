import enum


class ProductStatus(str, enum.Enum):
    PRE_SALE = "pre_sale"
    ON_SALE = "on_sale"
    DISCONTINUED = "discontinued"

    @property
    def label(self) -> str:
        return PRODUCT_STATUS_LABELS[self]


PRODUCT_STATUS_LABELS = {
    ProductStatus.PRE_SALE: "Pre-sale",
    ProductStatus.ON_SALE: "On sale",
    ProductStatus.DISCONTINUED: "Discontinued",
}
