# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

"""Product catalog routes: listing for every user, creation for managers"""

from flask import Blueprint, jsonify, g, current_app

from ..errors import ApiError, InternalError
from ..extensions import db
from ..services import catalog_service
from ..decorators import MANAGER_ROLES, require_auth, require_role
from ..validation import (
    PayloadPolicy,
    coerce_flag,
    coerce_money,
    json_body,
    query_arg,
    query_pagination,
    string_of,
    validate_payload,
)


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


PRODUCT_POLICY = PayloadPolicy(
    fields={
        "codigo": string_of(64),
        "nome": string_of(255),
        "descricao": string_of(2000),
        "preco_venda": coerce_money,
        "ativo": coerce_flag,
    },
    required={"codigo", "nome", "preco_venda"},
)


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Product catalog ordered by name.

    Query: page, limit, search (name or code), ativo
    """
    page, limit = query_pagination(default_limit=20, max_limit=100)
    rows, total = catalog_service.list_products(
        db.session,
        search=query_arg("search", string_of(100)),
        active=query_arg("ativo", coerce_flag),
        page=page,
        limit=limit,
    )
    total_pages = (total + limit - 1) // limit

    return jsonify({
        "products": [row.to_dict() for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }), 200


@products_bp.post("")
@require_auth
@require_role(*MANAGER_ROLES)
def create_product_route():
    """
    Create a product.

    Available to: admin, manager
    """
    cleaned = validate_payload(json_body(), PRODUCT_POLICY)

    try:
        product = catalog_service.create_product(
            db.session,
            code=cleaned["codigo"],
            name=cleaned["nome"],
            sale_price=cleaned["preco_venda"],
            description=cleaned.get("descricao") or None,
            is_active=cleaned.get("ativo") is not False,
        )
    except ApiError:
        raise
    except Exception:
        current_app.logger.exception("Failed to create product")
        raise InternalError("Internal server error")

    current_app.logger.info("Product %s (%s) created by user %s", product.id, product.code, g.current_user.id)
    return jsonify({"message": "Product created successfully", "product": product.to_dict()}), 201
