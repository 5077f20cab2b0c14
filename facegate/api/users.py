"""
User Management API Routes
===========================
Endpoint administrasi identitas. Semua route membutuhkan token akses.

Routes:
    POST   /api/users/        - Provisi identitas baru tanpa wajah (admin)
    GET    /api/users/        - Daftar identitas, opsional ?email= (admin)
    GET    /api/users/<id>    - Detail identitas (admin atau diri sendiri)
    PATCH  /api/users/<id>    - Update identitas (admin atau diri sendiri)
    DELETE /api/users/<id>    - Hapus identitas (admin)
"""

import logging
from flask import Blueprint, request, current_app, g

from facegate.errors import BadRequestError, ForbiddenError
from facegate.models.identity import Role
from facegate.services import user_service
from facegate.utils.auth import require_token, require_roles
from facegate.utils.responses import success_response, created_response, pagination_meta

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__, url_prefix="/api/users")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequestError("Body request harus berupa JSON object")
    return data


def _require_self_or_admin(identity_id: str):
    actor = g.current_identity
    if actor.role != Role.ADMIN.value and actor.id != identity_id:
        raise ForbiddenError("Tidak memiliki izin untuk mengakses identitas ini")


@bp.route("/", methods=["POST"])
@require_token
@require_roles(Role.ADMIN)
def create_user():
    """
    Request JSON: { email, name, password?, role? }

    Response:
        - 201: Identitas dibuat (belum aktif, menunggu registrasi wajah)
        - 400 / 409
    """
    data = _json_body()
    identity = user_service.create_identity(
        data.get("email"),
        data.get("name"),
        password=data.get("password"),
        role=data.get("role", Role.CLIENT.value),
    )
    return created_response(
        message="Identitas berhasil dibuat. Registrasi wajah dilakukan saat login pertama.",
        data=identity.to_dict()
    )


@bp.route("/", methods=["GET"])
@require_token
@require_roles(Role.ADMIN)
def list_users():
    """
    Query Params:
        - email: Filter substring email (opsional)
        - page: Nomor halaman (default: 1)
        - limit / per_page: Jumlah data per halaman
    """
    default_limit = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", request.args.get("per_page", default_limit, type=int), type=int)
    email = request.args.get("email", "").strip() or None

    paginated = user_service.list_identities(page=page, per_page=limit, email=email)

    return success_response(
        message=f"Menampilkan data halaman {paginated.page} dari {paginated.pages}",
        data=[identity.to_dict() for identity in paginated.items],
        meta=pagination_meta(paginated)
    )


@bp.route("/<string:identity_id>", methods=["GET"])
@require_token
def get_user(identity_id: str):
    _require_self_or_admin(identity_id)
    identity = user_service.get_identity(identity_id)
    return success_response(message="Identitas ditemukan", data=identity.to_dict())


@bp.route("/<string:identity_id>", methods=["PATCH"])
@require_token
def update_user(identity_id: str):
    """Request JSON: { name?, role?, is_active? }"""
    data = _json_body()
    identity = user_service.update_identity(identity_id, data, g.current_identity)
    return success_response(message="Identitas berhasil diperbarui", data=identity.to_dict())


@bp.route("/<string:identity_id>", methods=["DELETE"])
@require_token
@require_roles(Role.ADMIN)
def delete_user(identity_id: str):
    user_service.delete_identity(identity_id)
    return success_response(
        message=f"Identitas dengan ID {identity_id} berhasil dihapus"
    )
