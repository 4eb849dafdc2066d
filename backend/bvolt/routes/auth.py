# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Login with email + password (bcrypt), returns a bearer token
- Logout revokes the presented token
- Self-registration is not offered; users are created via `flask users create`
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..validation import PayloadPolicy, json_body, string_of, validate_payload


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


LOGIN_POLICY = PayloadPolicy(
    fields={
        "email": string_of(255),
        "password": string_of(255),
    },
    required={"email", "password"},
)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included as `Authorization: Bearer <token>` on protected routes.
    """
    cleaned = validate_payload(json_body(), LOGIN_POLICY)

    user = auth_service.authenticate(db.session, cleaned["email"], cleaned["password"])
    _, token = session_service.create_session(
        db.session,
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    current_app.logger.info("User %s logged in", user.id)
    return jsonify({
        "message": "Login successful",
        "token": token,
        "user": user.to_dict(),
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(db.session, g.session_token)
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
