# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g, current_app

from ..errors import ApiError, InternalError
from ..extensions import db
from ..services import catalog_service
from ..decorators import require_auth
from ..validation import PayloadPolicy, json_body, query_arg, query_pagination, string_of, validate_payload


clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


CLIENT_POLICY = PayloadPolicy(
    fields={
        "nome": string_of(255),
        "documento": string_of(18),
        "email": string_of(255),
        "telefone": string_of(32),
    },
    required={"nome"},
)


@clients_bp.get("")
@require_auth
def list_clients_route():
    """Query: page, limit, search (name, document or email)"""
    page, limit = query_pagination(default_limit=10, max_limit=100)
    rows, total = catalog_service.list_clients(
        db.session, search=query_arg("search", string_of(100)), page=page, limit=limit
    )
    return jsonify({
        "clients": [row.to_dict() for row in rows],
        "total": total,
        "page": page,
        "limit": limit,
    }), 200


@clients_bp.post("")
@require_auth
def create_client_route():
    cleaned = validate_payload(json_body(), CLIENT_POLICY)

    try:
        customer = catalog_service.create_client(
            db.session,
            name=cleaned["nome"],
            document=cleaned.get("documento") or None,
            email=cleaned.get("email") or None,
            phone=cleaned.get("telefone") or None,
        )
    except ApiError:
        raise
    except Exception:
        current_app.logger.exception("Failed to create client")
        raise InternalError("Internal server error")

    current_app.logger.info("Client %s created by user %s", customer.id, g.current_user.id)
    return jsonify({"message": "Client created successfully", "client": customer.to_dict()}), 201
