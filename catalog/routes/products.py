from decimal import Decimal, InvalidOperation

from flask import Blueprint
from werkzeug.exceptions import BadRequest

from catalog.errors import ProductNotFound
from catalog.models.enums import ProductStatus
from catalog.routes.responses import (
    api_error,
    api_response,
    iso,
    json_payload,
    optional_str,
)
from catalog.services import product_service

bp = Blueprint("products", __name__)


def _product_dto(product) -> dict:
    status = product.status_enum
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": str(product.price),
        "janCode": product.jan_code,
        "status": status.value,
        "statusLabel": status.label,
        "categoryIds": product.category_ids,
        "createdAt": iso(product.created_at),
        "updatedAt": iso(product.updated_at),
    }


def _category_ids(payload) -> list[int]:
    value = payload.get("categoryIds") or []
    if not isinstance(value, list):
        raise BadRequest("categoryIds must be a list")
    try:
        return [int(v) for v in value]
    except (TypeError, ValueError):
        raise BadRequest("categoryIds must contain integers")


@bp.route("/", methods=["POST"])
def create_product():
    payload = json_payload()
    name = optional_str(payload, "name")
    if not name or not name.strip():
        return api_error("Product could not be created", errors=["name is required"])
    try:
        price = Decimal(str(payload.get("price", "0")))
    except InvalidOperation:
        return api_error("Product could not be created", errors=["invalid price"])
    try:
        status = ProductStatus(payload.get("status", ProductStatus.PRE_SALE.value))
    except ValueError:
        return api_error("Product could not be created", errors=["invalid status"])

    product = product_service.create_product(
        name,
        price,
        description=optional_str(payload, "description") or None,
        jan_code=optional_str(payload, "janCode") or None,
        status=status,
        category_ids=_category_ids(payload),
    )
    return api_response(_product_dto(product), "Product created", status=201)


@bp.route("/<int:product_id>")
def product_detail(product_id):
    product = product_service.get_product(product_id)
    if not product:
        raise ProductNotFound(product_id)
    return api_response(_product_dto(product))


@bp.route("/<int:product_id>/categories", methods=["PUT"])
def set_categories(product_id):
    payload = json_payload()
    product = product_service.set_product_categories(
        product_id, _category_ids(payload)
    )
    if not product:
        raise ProductNotFound(product_id)
    return api_response(_product_dto(product), "Product categories updated")


@bp.route("/<int:product_id>", methods=["DELETE"])
def delete_product(product_id):
    if not product_service.delete_product(product_id):
        raise ProductNotFound(product_id)
    return api_response({"id": product_id}, "Product deleted")
