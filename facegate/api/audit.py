"""
Audit API Routes
=================
Endpoint baca-saja untuk tinjauan forensik jejak audit (admin).

Routes:
    GET /api/audit/   - Daftar record audit, opsional ?action=&identity_id=
"""

from flask import Blueprint, request, current_app

from facegate.errors import BadRequestError
from facegate.models.audit_event import AuditAction
from facegate.models.identity import Role
from facegate.services import audit_service
from facegate.utils.auth import require_token, require_roles
from facegate.utils.responses import success_response, pagination_meta

bp = Blueprint("audit", __name__, url_prefix="/api/audit")

ALLOWED_ACTIONS = {action.value for action in AuditAction}


@bp.route("/", methods=["GET"])
@require_token
@require_roles(Role.ADMIN)
def list_audit_events():
    default_limit = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", default_limit, type=int)
    action = request.args.get("action") or None
    identity_id = request.args.get("identity_id") or None

    if action is not None and action not in ALLOWED_ACTIONS:
        raise BadRequestError(
            f"Action tidak valid. Gunakan salah satu: {', '.join(sorted(ALLOWED_ACTIONS))}"
        )

    paginated = audit_service.list_events(
        page=page, per_page=limit, action=action, identity_id=identity_id
    )

    return success_response(
        message=f"Menampilkan data halaman {paginated.page} dari {paginated.pages}",
        data=[audit_event.to_dict() for audit_event in paginated.items],
        meta=pagination_meta(paginated)
    )
