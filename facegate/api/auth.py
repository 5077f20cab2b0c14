"""
Auth API Routes
================
Endpoint publik untuk registrasi dan login dua faktor (password + wajah).

Routes:
    POST /api/auth/register/start              - Mulai registrasi (kredensial)
    POST /api/auth/register/verify-face        - Selesaikan registrasi wajah
    POST /api/auth/complete-face-registration  - Registrasi wajah identitas buatan admin
    POST /api/auth/login/start                 - Login tahap 1 (email + password)
    POST /api/auth/login/verify-face           - Login tahap 2 (wajah), menerbitkan token
"""

import logging
from flask import Blueprint, request

from facegate.errors import BadRequestError
from facegate.services import auth_service
from facegate.services.audit_service import Origin
from facegate.utils.responses import success_response, created_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _json_body() -> dict:
    """Membaca body JSON; harus berupa object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequestError("Body request harus berupa JSON object")
    return data


def _origin() -> Origin:
    """Alamat dan user agent asal request untuk audit."""
    return Origin(
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


@bp.route("/register/start", methods=["POST"])
def start_registration():
    """
    Request JSON: { email, name, password }

    Response:
        - 200: { identity_id }
        - 400: Input tidak valid
        - 409: Email sudah terdaftar
    """
    data = _json_body()
    result = auth_service.start_registration(
        data.get("email"), data.get("name"), data.get("password"), _origin()
    )
    return success_response(
        message=result["message"],
        data={"identity_id": result["identity_id"]}
    )


@bp.route("/register/verify-face", methods=["POST"])
def verify_face_registration():
    """
    Request JSON: { email, faceDescriptor: [128 angka] }

    Response:
        - 201: { identity_id }
        - 400 / 404 / 409
    """
    data = _json_body()
    result = auth_service.verify_face_registration(
        data.get("email"), data.get("faceDescriptor"), _origin()
    )
    return created_response(
        message=result["message"],
        data={"identity_id": result["identity_id"]}
    )


@bp.route("/complete-face-registration", methods=["POST"])
def complete_face_registration():
    """
    Request JSON: { email, faceDescriptor: [128 angka] }

    Response:
        - 200: { identity_id }
        - 400 / 404 / 409
    """
    data = _json_body()
    result = auth_service.complete_face_registration(
        data.get("email"), data.get("faceDescriptor"), _origin()
    )
    return success_response(
        message=result["message"],
        data={"identity_id": result["identity_id"]}
    )


@bp.route("/login/start", methods=["POST"])
def start_authentication():
    """
    Request JSON: { email, password }

    Response:
        - 200: { requires_face_registration, requires_face_verification }
        - 401: Kredensial tidak valid
    """
    data = _json_body()
    result = auth_service.start_authentication(
        data.get("email"), data.get("password"), _origin()
    )
    return success_response(
        message=result["message"],
        data={
            "requires_face_registration": result["requires_face_registration"],
            "requires_face_verification": result["requires_face_verification"],
        }
    )


@bp.route("/login/verify-face", methods=["POST"])
def verify_face_authentication():
    """
    Request JSON: { email, faceDescriptor: [128 angka] }

    Response:
        - 200: { access_token, user }
        - 400: Deskriptor tidak valid
        - 401: Wajah tidak cocok / identitas tidak aktif
    """
    data = _json_body()
    result = auth_service.verify_face_authentication(
        data.get("email"), data.get("faceDescriptor"), _origin()
    )
    return success_response(message="Login berhasil", data=result)
