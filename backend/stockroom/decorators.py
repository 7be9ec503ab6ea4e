# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import ForbiddenError, UnauthorizedError, ValidationError
from .services import session_service


COMPANY_HEADER = "x-company-id"


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require authentication and establish tenant context.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated User
    - g.company_id: the session's company code
    - g.session_context: the full SessionContext

    Raises 401 for a missing or malformed Authorization header, or for a
    token that is unknown, revoked, expired, idle, or belongs to a
    deactivated user or company.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise UnauthorizedError("Authentication required")

        context = session_service.validate_session(token)
        if not context:
            raise UnauthorizedError("Invalid or expired token")

        g.current_user = context.user
        g.company_id = context.company_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_company(f):
    """
    Require the x-company-id header and bind it to the session's company.

    Must be applied after require_auth. A missing header is a 400; a header
    naming any other company is a 403, so one tenant can never address
    another tenant's rows by switching the header.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header_value = (request.headers.get(COMPANY_HEADER) or "").strip().upper()
        if not header_value:
            raise ValidationError("x-company-id header is required")

        if header_value != g.company_id:
            raise ForbiddenError("Company mismatch for this session")

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if not user:
                raise UnauthorizedError("Authentication required")
            if user.role not in roles:
                raise ForbiddenError(f"Requires role: {', '.join(roles)}")
            return f(*args, **kwargs)

        return decorated_function

    return decorator
