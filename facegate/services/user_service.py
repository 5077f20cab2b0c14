"""
User Management Service
========================
Operasi administratif untuk identitas: provisi oleh admin (tanpa wajah,
menunggu registrasi wajah pertama), daftar & pencarian email, update,
dan penghapusan.
"""

import logging
import uuid
from sqlalchemy.exc import IntegrityError

from facegate.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from facegate.extensions import db
from facegate.models.identity import Identity, Role
from facegate.services.credential_service import hash_password
from facegate.utils.validation import require_email, require_name, require_password

logger = logging.getLogger(__name__)

ALLOWED_ROLES = {role.value for role in Role}
ADMIN_UPDATABLE_FIELDS = {"name", "role", "is_active"}


def _require_role(value) -> str:
    if value not in ALLOWED_ROLES:
        raise BadRequestError(
            f"Role tidak valid. Gunakan salah satu: {', '.join(sorted(ALLOWED_ROLES))}"
        )
    return value


def create_identity(email, name, password=None, role=Role.CLIENT.value) -> Identity:
    """
    Membuat identitas oleh admin dalam status PENDING_FACE.

    Identitas belum aktif dan belum memiliki deskriptor; wajah didaftarkan
    pada login pertama lewat complete_face_registration. Tanpa password,
    identitas belum bisa login sama sekali.

    Raises:
        BadRequestError: Input tidak valid.
        ConflictError: Email sudah terdaftar.
    """
    email = require_email(email)
    name = require_name(name)
    role = _require_role(role)

    password_hash = None
    if password is not None:
        password_hash = hash_password(require_password(password))

    if Identity.query.filter_by(email=email).first() is not None:
        raise ConflictError("Email sudah terdaftar")

    identity = Identity(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        password_hash=password_hash,
        role=role,
        is_active=False,
        face_descriptor=None,
    )

    try:
        db.session.add(identity)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email sudah terdaftar")

    logger.info("Identitas diprovisi oleh admin: ID=%s, role=%s", identity.id, role)

    return identity


def list_identities(page: int = 1, per_page: int = 10, email: str | None = None):
    """
    Mendapatkan daftar identitas (terbaru dulu) dengan paginasi.

    Args:
        email: Filter substring email, case-insensitive (opsional).
    """
    query = Identity.query

    if email:
        query = query.filter(Identity.email.ilike(f"%{email}%"))

    return query.order_by(Identity.created_at.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )


def get_identity(identity_id: str) -> Identity:
    identity = db.session.get(Identity, identity_id)
    if identity is None:
        raise NotFoundError(f"Identitas dengan ID {identity_id} tidak ditemukan")
    return identity


def update_identity(identity_id: str, changes: dict, actor: Identity) -> Identity:
    """
    Memperbarui identitas.

    Admin boleh mengubah name, role, dan is_active identitas mana pun.
    Client hanya boleh mengubah name miliknya sendiri.

    Raises:
        ForbiddenError: Client mengubah identitas lain.
        BadRequestError: Field tidak dikenal / nilai tidak valid, atau
            mengaktifkan identitas yang belum memiliki wajah.
    """
    identity = get_identity(identity_id)

    if actor.role != Role.ADMIN.value:
        if actor.id != identity.id:
            raise ForbiddenError("Tidak memiliki izin untuk mengubah identitas ini")
        # Client: field selain name diabaikan
        changes = {"name": changes["name"]} if "name" in changes else {}

    unknown = set(changes) - ADMIN_UPDATABLE_FIELDS
    if unknown:
        raise BadRequestError(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")

    if "name" in changes:
        identity.name = require_name(changes["name"])

    if "role" in changes:
        identity.role = _require_role(changes["role"])

    if "is_active" in changes:
        is_active = changes["is_active"]
        if not isinstance(is_active, bool):
            raise BadRequestError("is_active harus bernilai boolean")
        if is_active and not identity.has_face:
            raise BadRequestError(
                "Identitas tidak dapat diaktifkan sebelum registrasi wajah selesai"
            )
        identity.is_active = is_active

    db.session.commit()

    logger.info("Identitas diperbarui: ID=%s, field=%s", identity.id, sorted(changes))

    return identity


def delete_identity(identity_id: str) -> None:
    """Menghapus identitas. Record audit terkait tetap utuh."""
    identity = get_identity(identity_id)

    db.session.delete(identity)
    db.session.commit()

    logger.info("Identitas dihapus: ID=%s", identity_id)
