# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes with role enforcement"""

from flask import Blueprint, jsonify, g, current_app

from ..errors import ApiError, InternalError, ValidationError
from ..extensions import db
from ..models import PAYMENT_METHODS, SALE_STATUSES
from ..services import sales_service
from ..services.sales_service import LineItemRequest, SaleFilters, SaleRequest
from ..decorators import MANAGER_ROLES, require_auth, require_role
from ..validation import (
    PayloadPolicy,
    coerce_iso_datetime,
    coerce_money,
    coerce_positive_int,
    coerce_quantity,
    json_body,
    one_of,
    query_arg,
    query_pagination,
    string_of,
    validate_payload,
)


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


SALE_POLICY = PayloadPolicy(
    fields={
        "cliente_id": coerce_positive_int,
        "itens": lambda key, value: value,
        "forma_pagamento": one_of(PAYMENT_METHODS),
        "desconto": coerce_money,
        "acrescimo": coerce_money,
        "valor_frete": coerce_money,
        "observacoes": string_of(2000),
        "endereco_entrega": string_of(500),
    },
    required={"cliente_id", "itens", "forma_pagamento"},
)

LINE_ITEM_POLICY = PayloadPolicy(
    fields={
        "produto_id": coerce_positive_int,
        "quantidade": coerce_quantity,
        "preco_unitario": coerce_money,
        "desconto_item": coerce_money,
    },
    required={"produto_id", "quantidade"},
)

STATUS_POLICY = PayloadPolicy(
    fields={"status": one_of(SALE_STATUSES)},
    required={"status"},
)


def _parse_line_items(raw) -> list[LineItemRequest]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one item is required", details={"field": "itens"})

    items = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError("Each item must be an object", details={"field": f"itens[{index}]"})
        cleaned = validate_payload(entry, LINE_ITEM_POLICY)
        items.append(
            LineItemRequest(
                product_id=cleaned["produto_id"],
                quantity=cleaned["quantidade"],
                unit_price=cleaned.get("preco_unitario"),
                discount=cleaned.get("desconto_item") or sales_service.ZERO,
            )
        )
    return items


def _build_sale_request(payload: dict) -> SaleRequest:
    cleaned = validate_payload(payload, SALE_POLICY)
    return SaleRequest(
        customer_id=cleaned["cliente_id"],
        line_items=_parse_line_items(cleaned["itens"]),
        payment_method=cleaned["forma_pagamento"],
        discount=cleaned.get("desconto") or sales_service.ZERO,
        surcharge=cleaned.get("acrescimo") or sales_service.ZERO,
        shipping_value=cleaned.get("valor_frete") or sales_service.ZERO,
        notes=cleaned.get("observacoes") or None,
        delivery_address=cleaned.get("endereco_entrega") or None,
    )


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Create a sale with its lines.

    Available to: all authenticated users (the caller becomes the seller)
    """
    sale_request = _build_sale_request(json_body())

    try:
        sale = sales_service.create_sale(db.session, sale_request, seller_id=g.current_user.id)
    except ApiError:
        raise
    except Exception:
        current_app.logger.exception("Failed to create sale")
        raise InternalError("Internal server error")

    current_app.logger.info(
        "Sale %s created by user %s (total %s)",
        sale.sequence_number, g.current_user.id, sale.total,
    )
    return jsonify({
        "message": "Sale created successfully",
        "sale": sale.to_dict(),
    }), 201


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Paginated sales list.

    Query: page, limit, cliente, vendedor, status, data_inicio, data_fim
    Sellers only ever see their own sales.
    """
    page, limit = query_pagination(default_limit=20, max_limit=100)
    filters = SaleFilters(
        seller_id=query_arg("vendedor", coerce_positive_int),
        customer_id=query_arg("cliente", coerce_positive_int),
        status=query_arg("status", one_of(SALE_STATUSES)),
        created_from=query_arg("data_inicio", coerce_iso_datetime),
        created_to=query_arg("data_fim", coerce_iso_datetime),
    )

    result = sales_service.list_sales(db.session, filters, viewer=g.current_user, page=page, limit=limit)
    total_pages = result.total_pages

    return jsonify({
        "sales": [sale.to_dict() for sale in result.sales],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": result.total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """Sale with its lines."""
    sale = sales_service.get_sale(db.session, sale_id, viewer=g.current_user)
    return jsonify({"sale": sale.to_dict(include_lines=True)}), 200


@sales_bp.put("/<int:sale_id>/status")
@require_auth
@require_role(*MANAGER_ROLES)
def update_sale_status_route(sale_id: int):
    """
    Change a sale's status.

    Available to: admin, manager
    """
    cleaned = validate_payload(json_body(), STATUS_POLICY)

    try:
        sale = sales_service.update_sale_status(db.session, sale_id, cleaned["status"])
    except ApiError:
        raise
    except Exception:
        current_app.logger.exception("Failed to update sale status")
        raise InternalError("Internal server error")

    current_app.logger.info(
        "Sale %s status set to %s by user %s", sale_id, sale.status, g.current_user.id
    )
    return jsonify({
        "message": "Sale status updated successfully",
        "sale": sale.to_dict(),
    }), 200
