from quart import Blueprint, jsonify, request

from .service import cancel_order, create_order, get_order, list_orders, update_payment, update_status
from ..common.auth import admin_required, current_user, require_auth

bp = Blueprint("orders", __name__)


async def _json_body():
    data = await request.get_json(force=True, silent=True)
    return data if data is not None else {}


async def _body_field(name: str):
    data = await _json_body()
    return data.get(name) if isinstance(data, dict) else None


@bp.post("/orders")
@require_auth
async def orders_create():
    order = await create_order(current_user(), await _json_body())
    return jsonify({"success": True, "message": "Order created successfully", "order": order}), 201


@bp.get("/orders")
@require_auth
async def orders_list():
    return jsonify(await list_orders(current_user()))


@bp.get("/orders/<order_id>")
@require_auth
async def orders_detail(order_id: str):
    return jsonify(await get_order(current_user(), order_id))


@bp.put("/orders/<order_id>/status")
@require_auth
@admin_required
async def orders_status(order_id: str):
    order = await update_status(current_user(), order_id, await _body_field("status"))
    return jsonify({"success": True, "message": "Order status updated successfully", "order": order})


@bp.put("/orders/<order_id>/payment")
@require_auth
@admin_required
async def orders_payment(order_id: str):
    order = await update_payment(current_user(), order_id, await _body_field("paymentStatus"))
    return jsonify({"success": True, "message": "Payment status updated successfully", "order": order})


@bp.put("/orders/<order_id>/cancel")
@require_auth
async def orders_cancel(order_id: str):
    order = await cancel_order(current_user(), order_id)
    return jsonify({"success": True, "message": "Order cancelled successfully", "order": order})
