from functools import wraps

from flask import jsonify, request
from flask_login import current_user, login_required


def add_security_headers(f):
    """Add security headers to API responses"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        response = f(*args, **kwargs)
        if hasattr(response, "headers"):
            response.headers["X-XSS-Protection"] = "1; mode=block"
            response.headers["Cache-Control"] = (
                "no-store, no-cache, must-revalidate, max-age=0"
            )
        return response

    return decorated_function


def admin_required(f):
    """Only administrators may call the wrapped view"""

    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"error": "Admin privileges required"}), 403
        return f(*args, **kwargs)

    return decorated_function


def bearer_token():
    """Token from an 'Authorization: Bearer <token>' header, or None"""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def flag_arg(name):
    """Boolean query-string flag (?name=1, true, yes)"""
    return request.args.get(name, "").lower() in ("1", "true", "yes")
