"""
Audit Service
==============
Mencatat setiap percobaan transisi keamanan (berhasil maupun gagal)
ke tabel audit_events.

Record ditambahkan ke session yang sama dengan perubahan identitas dari
operasi pemanggil, lalu di-commit bersama. Jika commit gagal, semua
perubahan di-rollback dan AuditWriteError dilempar: tidak ada transisi
yang selesai tanpa jejak audit.
"""

import logging
import uuid
from dataclasses import dataclass
from sqlalchemy.exc import SQLAlchemyError

from facegate.errors import AuditWriteError
from facegate.extensions import db
from facegate.models.audit_event import AuditAction, AuditEvent

logger = logging.getLogger(__name__)

IP_ADDRESS_MAX_LENGTH = 45
USER_AGENT_MAX_LENGTH = 500


@dataclass(frozen=True)
class Origin:
    """Asal request untuk atribusi audit. Kedua field boleh kosong."""

    ip_address: str | None = None
    user_agent: str | None = None


def _truncate(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    return value[:limit]


def record(
    action: AuditAction,
    identity,
    details: str,
    origin: Origin | None = None,
    success: bool = True,
) -> AuditEvent:
    """
    Menyimpan satu record audit secara sinkron.

    Args:
        action: Jenis kejadian.
        identity: Identity terkait, atau None.
        details: Keterangan bebas (boleh berisi info internal).
        origin: Alamat dan user agent asal request.
        success: Apakah kejadian ini keberhasilan.

    Returns:
        AuditEvent: Record yang sudah tersimpan.

    Raises:
        AuditWriteError: Jika record gagal disimpan.
    """
    origin = origin or Origin()

    audit_event = AuditEvent(
        id=str(uuid.uuid4()),
        action=AuditAction(action).value,
        details=details,
        ip_address=_truncate(origin.ip_address, IP_ADDRESS_MAX_LENGTH),
        user_agent=_truncate(origin.user_agent, USER_AGENT_MAX_LENGTH),
        success=success,
        identity_id=identity.id if identity is not None else None,
    )

    try:
        db.session.add(audit_event)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Gagal menyimpan audit %s", audit_event.action)
        raise AuditWriteError() from e

    logger.info(
        "Audit tercatat: action=%s, identity=%s, success=%s",
        audit_event.action, audit_event.identity_id, success
    )

    return audit_event


def list_events(page: int = 1, per_page: int = 10, action: str | None = None,
                identity_id: str | None = None):
    """
    Mendapatkan daftar record audit (terbaru dulu) dengan paginasi.

    Returns:
        flask_sqlalchemy.pagination.Pagination
    """
    query = AuditEvent.query

    if action:
        query = query.filter_by(action=action)
    if identity_id:
        query = query.filter_by(identity_id=identity_id)

    return query.order_by(AuditEvent.created_at.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
