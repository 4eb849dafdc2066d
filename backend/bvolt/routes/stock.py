# Overview: Flask API routes for stock operations; parses input and returns JSON responses.

"""Stock API routes: current levels, the movement ledger and low-stock alerts"""

from flask import Blueprint, jsonify, g, current_app

from ..errors import ApiError, InternalError
from ..extensions import db
from ..models import MOVEMENT_TYPES
from ..services import stock_service
from ..decorators import MANAGER_ROLES, require_auth, require_role
from ..validation import (
    PayloadPolicy,
    coerce_positive_int,
    json_body,
    one_of,
    query_arg,
    query_pagination,
    string_of,
    validate_payload,
)


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


MOVEMENT_POLICY = PayloadPolicy(
    fields={
        "produto_id": coerce_positive_int,
        "tipo": one_of(MOVEMENT_TYPES),
        "quantidade": coerce_positive_int,
        "observacao": string_of(1000),
    },
    required={"produto_id", "tipo", "quantidade"},
)


@stock_bp.get("")
@require_auth
def list_stock_route():
    """
    Current stock levels.

    Query: page, limit, search (product name, case-insensitive)
    """
    page, limit = query_pagination(default_limit=10, max_limit=100)
    search = query_arg("search", string_of(255))

    rows, total = stock_service.list_stock(db.session, search=search, page=page, limit=limit)
    return jsonify({
        "stock": [row.to_dict() for row in rows],
        "total": total,
        "page": page,
        "limit": limit,
    }), 200


@stock_bp.get("/movements")
@require_auth
def list_movements_route():
    """
    Stock ledger, newest first.

    Query: page, limit, produto_id
    """
    page, limit = query_pagination(default_limit=10, max_limit=100)
    product_id = query_arg("produto_id", coerce_positive_int)

    rows, total = stock_service.list_movements(
        db.session, product_id=product_id, page=page, limit=limit
    )
    return jsonify({
        "movements": [row.to_dict() for row in rows],
        "total": total,
        "page": page,
        "limit": limit,
    }), 200


@stock_bp.post("/movement")
@require_auth
@require_role(*MANAGER_ROLES)
def record_movement_route():
    """
    Record an inbound, outbound or adjustment movement.

    Available to: admin, manager
    """
    cleaned = validate_payload(json_body(), MOVEMENT_POLICY)

    try:
        result = stock_service.record_movement(
            db.session,
            product_id=cleaned["produto_id"],
            movement_type=cleaned["tipo"],
            quantity=cleaned["quantidade"],
            note=cleaned.get("observacao") or None,
            actor_id=g.current_user.id,
        )
    except ApiError:
        raise
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        raise InternalError("Internal server error")

    current_app.logger.info(
        "Stock movement %s on product %s by user %s: %s %s -> %s",
        result.movement.id,
        cleaned["produto_id"],
        g.current_user.id,
        cleaned["tipo"],
        cleaned["quantidade"],
        result.new_quantity,
    )
    return jsonify({
        "message": "Stock movement recorded successfully",
        "movement": result.to_dict(),
    }), 201


@stock_bp.get("/low")
@require_auth
def low_stock_route():
    """Products at or below their minimum quantity."""
    rows = stock_service.list_low_stock(db.session)
    return jsonify({"low_stock": [row.to_dict() for row in rows]}), 200
