from quart import Blueprint, jsonify, request

from .service import get_product, get_products
from ..common.db import is_object_id
from ..common.errors import NotFound

bp = Blueprint("catalog", __name__)


@bp.get("/products")
async def products_list():
    items = await get_products(request.args.get("category"))
    return jsonify({"products": items})


@bp.get("/products/<product_id>")
async def product_detail(product_id: str):
    prod = await get_product(product_id) if is_object_id(product_id) else None
    if not prod:
        raise NotFound("Product not found")
    return jsonify({"product": prod})
