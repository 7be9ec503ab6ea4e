# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication routes

- POST /api/auth/login   email + password (+ companyId when the email is
                         registered with more than one company)
- POST /api/auth/logout  revokes the bearer token
- GET  /api/auth/me      current user and company

Tokens are opaque; only their SHA-256 hash is stored.
"""

from flask import Blueprint, request, g, current_app

from ..decorators import bearer_token, require_auth
from ..errors import UnauthorizedError
from ..services import auth_service, company_service, session_service
from ..wire import from_wire, ok


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Request body:
    {
        "email": "admin@example.com",   // required
        "password": "...",              // required
        "companyId": "ABCDEF"           // optional
    }

    Returns:
        {token, expiresAt, user, company}
    """
    data = from_wire(request.get_json(silent=True))

    user = auth_service.authenticate(
        email=data.get("email"),
        password=data.get("password"),
        company_id=data.get("company_id"),
    )

    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    company = company_service.get_company(user.company_id)
    current_app.logger.info("User %s logged in to company %s", user.id, user.company_id)

    return ok(
        {
            "token": token,
            "expires_at": session.expires_at,
            "user": user.to_dict(),
            "company": company.to_dict(),
        },
        message="Login successful",
    )


@auth_bp.post("/logout")
def logout_route():
    """Revoke the bearer token. Expects Authorization: Bearer <token>."""
    token = bearer_token()
    if not token:
        raise UnauthorizedError("Authorization header required")

    if not session_service.revoke_session(token, reason="User logout"):
        raise UnauthorizedError("Invalid or expired token")

    return ok(message="Logout successful")


@auth_bp.get("/me")
@require_auth
def me_route():
    company = company_service.get_company(g.company_id)
    return ok({"user": g.current_user.to_dict(), "company": company.to_dict()})
