# Overview: Flask API routes for order operations; parses input and returns JSON responses.

"""
Order API routes

Customers submit and follow their orders; staff approve, decline, stage,
assign and annotate them. Capability checks run in the decorators,
record-level visibility and state preconditions in order_service.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import (
    domain_error_response,
    internal_error_response,
    require_auth,
    require_permission,
)
from ..errors import DomainError
from ..services import order_service, upload_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _serialize(order) -> dict:
    return order_service.serialize_order(order, g.principal)


@orders_bp.post("")
@require_auth
@require_permission("CREATE_ORDER")
def create_order_route():
    """
    Submit an order.

    Accepts JSON, or multipart form fields plus an optional `screenshot`
    image (max 150KB). The payload is checked before the image is stored,
    and a stored image is removed again if the order is not created.

    Required: product_link, product_name, shipping_address
    Optional: quantity, variation, specifications, notes, estimated_cost
    """
    stored_paths = []
    try:
        order_service.ensure_can_create(g.principal)

        if request.is_json:
            payload = _json_body()
            screenshot_path = None
        else:
            payload = request.form.to_dict()
            payload.pop("screenshot", None)
            order_service.validate_order_payload(payload)
            screenshot = request.files.get("screenshot")
            screenshot_path = None
            if screenshot and screenshot.filename:
                screenshot_path = upload_service.save_upload(screenshot, "screenshot").path
                stored_paths.append(screenshot_path)

        order = order_service.create_order(g.principal, payload, screenshot_path=screenshot_path)
    except DomainError as e:
        upload_service.discard_uploads(stored_paths)
        return domain_error_response(e)
    except Exception:
        upload_service.discard_uploads(stored_paths)
        current_app.logger.exception("Failed to create order")
        return internal_error_response()

    current_app.logger.info("Order %s submitted by %s", order.id, g.principal.id)
    return jsonify({"order": _serialize(order)}), 201


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    List orders.

    Query params:
    - scope: own | assigned | all (defaults by role)
    - status: pending | approved | declined
    """
    try:
        orders = order_service.list_orders(
            g.principal,
            scope=request.args.get("scope") or None,
            status=request.args.get("status") or None,
        )
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return internal_error_response()

    return jsonify({"orders": [_serialize(o) for o in orders], "count": len(orders)})


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(g.principal, order_id)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load order")
        return internal_error_response()

    return jsonify({"order": _serialize(order)})


@orders_bp.get("/<order_id>/history")
@require_auth
def get_order_history_route(order_id: str):
    """Status history, newest first."""
    try:
        history = order_service.get_order_history(g.principal, order_id)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load order history")
        return internal_error_response()

    return jsonify({"history": [h.to_dict() for h in history]})


@orders_bp.post("/<order_id>/approve")
@require_auth
@require_permission("PROCESS_ORDERS")
def approve_order_route(order_id: str):
    """Approve a pending order. Optional body: {"assigned_employee_id": "..."}"""
    data = _json_body()
    try:
        order = order_service.approve_order(
            g.principal, order_id, assigned_employee_id=data.get("assigned_employee_id") or None
        )
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to approve order")
        return internal_error_response()

    current_app.logger.info("Order %s approved by %s", order.id, g.principal.id)
    return jsonify({"order": _serialize(order)})


@orders_bp.post("/<order_id>/decline")
@require_auth
@require_permission("PROCESS_ORDERS")
def decline_order_route(order_id: str):
    """Decline a pending order. Body: {"reason": "..."} (required)"""
    data = _json_body()
    try:
        order = order_service.decline_order(g.principal, order_id, data.get("reason"))
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to decline order")
        return internal_error_response()

    current_app.logger.info("Order %s declined by %s", order.id, g.principal.id)
    return jsonify({"order": _serialize(order)})


@orders_bp.patch("/<order_id>/stage")
@require_auth
@require_permission("PROCESS_ORDERS")
def update_stage_route(order_id: str):
    """Body: {"stage": "...", "note": "..."}; note is optional."""
    data = _json_body()
    try:
        order = order_service.advance_stage(g.principal, order_id, data.get("stage"), data.get("note"))
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order stage")
        return internal_error_response()

    current_app.logger.info("Order %s moved to %s by %s", order.id, order.order_stage, g.principal.id)
    return jsonify({"order": _serialize(order)})


@orders_bp.patch("/<order_id>/assign")
@require_auth
@require_permission("ASSIGN_ORDERS")
def assign_order_route(order_id: str):
    """Body: {"employee_id": "..."}"""
    data = _json_body()
    try:
        order = order_service.assign_employee(g.principal, order_id, data.get("employee_id"))
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to assign order")
        return internal_error_response()

    current_app.logger.info("Order %s assigned to %s by %s", order.id, order.assigned_employee_id, g.principal.id)
    return jsonify({"order": _serialize(order)})


@orders_bp.patch("/<order_id>/notes")
@require_auth
@require_permission("PROCESS_ORDERS")
def update_notes_route(order_id: str):
    """Body: {"internal_notes": "..."}; empty clears."""
    data = _json_body()
    try:
        order = order_service.set_internal_notes(g.principal, order_id, data.get("internal_notes"))
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order notes")
        return internal_error_response()

    return jsonify({"order": _serialize(order)})


@orders_bp.patch("/<order_id>/tracking")
@require_auth
@require_permission("PROCESS_ORDERS")
def update_tracking_route(order_id: str):
    """Body: {"tracking_number": "..."}; empty clears."""
    data = _json_body()
    try:
        order = order_service.set_tracking_number(g.principal, order_id, data.get("tracking_number"))
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update tracking number")
        return internal_error_response()

    return jsonify({"order": _serialize(order)})
