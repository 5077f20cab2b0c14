"""
Token Service
==============
Menerbitkan dan memverifikasi token akses (JWT HS256) setelah
verifikasi wajah berhasil. Masa berlaku diatur lewat konfigurasi
deployment (JWT_EXPIRATION_HOURS), bukan per pemanggilan.
"""

import logging
from datetime import datetime, timedelta, timezone
import jwt
from flask import current_app

from facegate.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def issue_token(identity) -> str:
    """
    Membuat token akses untuk identitas.

    Args:
        identity: Instance Identity yang sudah terverifikasi.

    Returns:
        str: JWT berisi sub, email, dan role.
    """
    now = datetime.now(timezone.utc)
    hours = current_app.config.get("JWT_EXPIRATION_HOURS", 24)

    payload = {
        "sub": identity.id,
        "email": identity.email,
        "role": identity.role,
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }

    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def decode_token(token: str) -> dict:
    """
    Memverifikasi tanda tangan dan masa berlaku token.

    Raises:
        UnauthorizedError: Jika token kedaluwarsa atau tidak valid.
    """
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token sudah kedaluwarsa")
    except jwt.InvalidTokenError as e:
        logger.warning("Token ditolak: %s", str(e))
        raise UnauthorizedError("Token tidak valid")
