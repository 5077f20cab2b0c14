"""
Model AuditEvent
=================
Jejak audit append-only untuk setiap keputusan keamanan (registrasi,
login, percobaan wajah duplikat). Record tidak pernah diubah atau
dihapus setelah dibuat.
"""

import enum
from datetime import datetime, timezone
from sqlalchemy import event
from facegate.extensions import db


class AuditAction(str, enum.Enum):
    REGISTRATION_STARTED = "registration_started"
    REGISTRATION_COMPLETED = "registration_completed"
    FACE_REGISTRATION_COMPLETED = "face_registration_completed"
    LOGIN_CREDENTIALS_VALIDATED = "login_credentials_validated"
    LOGIN_FAILED = "login_failed"
    LOGIN_FACE_FAILED = "login_face_failed"
    LOGIN_SUCCESS = "login_success"
    DUPLICATE_FACE_ATTEMPT = "duplicate_face_attempt"


class AuditEvent(db.Model):
    """Model untuk menyimpan satu kejadian audit."""

    __tablename__ = "audit_events"

    id = db.Column(db.String(36), primary_key=True)
    action = db.Column(db.String(50), nullable=False, index=True)
    details = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    success = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )
    # Referensi lemah: tanpa foreign key agar penghapusan identitas
    # tidak pernah mengubah jejak audit.
    identity_id = db.Column(
        db.String(36),
        nullable=True,
        index=True,
        comment="ID identitas terkait (boleh kosong)"
    )

    def __repr__(self):
        return f"<AuditEvent id={self.id} action={self.action} success={self.success}>"

    def to_dict(self):
        """Konversi model ke dictionary untuk response API."""
        return {
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "success": self.success,
            "identity_id": self.identity_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@event.listens_for(AuditEvent, "before_update")
def _reject_update(mapper, connection, target):
    raise ValueError("AuditEvent bersifat append-only dan tidak boleh diubah")


@event.listens_for(AuditEvent, "before_delete")
def _reject_delete(mapper, connection, target):
    raise ValueError("AuditEvent bersifat append-only dan tidak boleh dihapus")
