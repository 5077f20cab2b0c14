"""
Authentication Utilities
========================
Decorator untuk endpoint yang membutuhkan token akses dan peran tertentu.
"""

from functools import wraps
from flask import request, g

from facegate.errors import ForbiddenError, UnauthorizedError
from facegate.extensions import db
from facegate.models.identity import Identity
from facegate.services.token_service import decode_token


def require_token(f):
    """
    Decorator untuk memvalidasi header Authorization: Bearer <token>.

    Identitas dimuat ulang dari database dan harus masih aktif, sehingga
    token milik identitas yang sudah dinonaktifkan ditolak di sini.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")

        if scheme.lower() != "bearer" or not token:
            raise UnauthorizedError("Unauthorized: Missing bearer token")

        payload = decode_token(token.strip())

        identity = db.session.get(Identity, payload["sub"])
        if identity is None or not identity.is_active:
            raise UnauthorizedError("Identitas tidak ditemukan atau tidak aktif")

        g.current_identity = identity
        return f(*args, **kwargs)
    return decorated_function


def require_roles(*roles):
    """Decorator (dipakai setelah require_token) untuk membatasi peran."""
    allowed = {getattr(role, "value", role) for role in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            identity = getattr(g, "current_identity", None)
            if identity is None or identity.role not in allowed:
                raise ForbiddenError("Akses ditolak untuk peran ini")
            return f(*args, **kwargs)
        return decorated_function
    return decorator
