"""
Authentication Service
=======================
State machine registrasi dan login dua faktor (password + wajah).

Status identitas:
    UNREGISTERED  --start_registration-->          PENDING_FACE
    PENDING_FACE  --verify_face_registration-->    ACTIVE
    PENDING_FACE  --complete_face_registration-->  ACTIVE   (jalur admin)
    ACTIVE        --start_authentication + verify_face_authentication--> token

Setiap transisi (berhasil atau gagal karena alasan keamanan) dicatat
di audit sebelum hasilnya dikembalikan ke pemanggil.
"""

import logging
import threading
import uuid
from sqlalchemy.exc import IntegrityError

from facegate.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from facegate.extensions import db
from facegate.models.audit_event import AuditAction
from facegate.models.identity import Identity, Role
from facegate.services import audit_service
from facegate.services.audit_service import Origin
from facegate.services.credential_service import hash_password, verify_password
from facegate.services.duplicate_guard import check_no_duplicate
from facegate.services.face_service import compare_descriptors, validate_descriptor
from facegate.services.token_service import issue_token
from facegate.utils.validation import require_email, require_name, require_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Kredensial tidak valid"

# Menserialisasi "scan duplikat + simpan deskriptor" dalam satu proses,
# supaya dua pendaftaran wajah yang saling cocok tidak lolos bersamaan.
_enrollment_lock = threading.Lock()


def _find_by_email(email: str) -> Identity | None:
    return Identity.query.filter_by(email=email).first()


def _attach_descriptor(identity: Identity, descriptor: list[float], action: AuditAction,
                       details: str, origin: Origin) -> None:
    """Cek duplikat, pasang deskriptor, aktifkan, lalu audit (satu commit)."""
    with _enrollment_lock:
        check_no_duplicate(descriptor, exclude_email=identity.email, origin=origin)

        identity.descriptor = descriptor
        identity.is_active = True

        audit_service.record(action, identity, details, origin, success=True)


def start_registration(email, name, password, origin: Origin | None = None):
    """
    Memulai registrasi: membuat identitas baru tanpa wajah (belum aktif).

    Returns:
        dict: { identity_id, message }

    Raises:
        BadRequestError: Input tidak valid.
        ConflictError: Email sudah terdaftar.
    """
    email = require_email(email)
    name = require_name(name)
    password = require_password(password)

    if _find_by_email(email) is not None:
        raise ConflictError("Email sudah terdaftar")

    identity = Identity(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=Role.CLIENT.value,
        is_active=False,
    )

    try:
        db.session.add(identity)
        db.session.flush()
    except IntegrityError:
        # Pendaftaran paralel dengan email yang sama
        db.session.rollback()
        raise ConflictError("Email sudah terdaftar")

    audit_service.record(
        AuditAction.REGISTRATION_STARTED,
        identity,
        f"Registrasi dimulai untuk {email}",
        origin,
        success=True,
    )

    logger.info("Registrasi dimulai: ID=%s", identity.id)

    return {
        "identity_id": identity.id,
        "message": "Identitas dibuat. Silakan lanjutkan registrasi wajah.",
    }


def verify_face_registration(email, descriptor, origin: Origin | None = None):
    """
    Menyelesaikan registrasi mandiri: memasang deskriptor dan mengaktifkan.

    Returns:
        dict: { identity_id, message }

    Raises:
        NotFoundError: Email tidak dikenal.
        BadRequestError: Identitas sudah aktif, sudah memiliki wajah, atau
            deskriptor tidak valid.
        ConflictError: Wajah sudah dimiliki identitas lain.
    """
    identity = _find_by_email(email) if isinstance(email, str) else None
    if identity is None:
        raise NotFoundError("Identitas tidak ditemukan")

    if identity.is_active:
        raise BadRequestError("Identitas sudah aktif")

    # Identitas yang dinonaktifkan admin tetap memegang wajahnya
    if identity.has_face:
        raise BadRequestError("Identitas sudah memiliki registrasi wajah")

    candidate = validate_descriptor(descriptor)

    _attach_descriptor(
        identity,
        candidate,
        AuditAction.REGISTRATION_COMPLETED,
        f"Registrasi wajah selesai untuk {email}",
        origin,
    )

    logger.info("Registrasi wajah selesai: ID=%s", identity.id)

    return {
        "identity_id": identity.id,
        "message": "Registrasi berhasil diselesaikan",
    }


def complete_face_registration(email, descriptor, origin: Origin | None = None):
    """
    Registrasi wajah pertama untuk identitas yang dibuat admin.

    Returns:
        dict: { identity_id, message }

    Raises:
        NotFoundError: Email tidak dikenal.
        BadRequestError: Sudah punya wajah atau deskriptor tidak valid.
        ConflictError: Wajah sudah dimiliki identitas lain.
    """
    identity = _find_by_email(email) if isinstance(email, str) else None
    if identity is None:
        raise NotFoundError("Identitas tidak ditemukan")

    if identity.has_face:
        raise BadRequestError("Identitas sudah memiliki registrasi wajah")

    candidate = validate_descriptor(descriptor)

    _attach_descriptor(
        identity,
        candidate,
        AuditAction.FACE_REGISTRATION_COMPLETED,
        f"Registrasi wajah (provisi admin) selesai untuk {email}",
        origin,
    )

    logger.info("Registrasi wajah (provisi admin) selesai: ID=%s", identity.id)

    return {
        "identity_id": identity.id,
        "message": "Registrasi wajah berhasil diselesaikan",
    }


def _reject_credentials(identity: Identity | None, details: str, origin: Origin):
    audit_service.record(AuditAction.LOGIN_FAILED, identity, details, origin, success=False)
    raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)


def start_authentication(email, password, origin: Origin | None = None):
    """
    Login tahap 1: validasi email dan password.

    Returns:
        dict: { requires_face_registration, requires_face_verification, message }

    Raises:
        BadRequestError: Email tidak berformat email atau password kosong.
            Ditolak sebelum lookup, tanpa catatan audit.
        UnauthorizedError: Kredensial salah. Alasan spesifik (email tidak
            dikenal vs password salah) hanya dicatat di audit.
    """
    email = require_email(email)
    password = require_password(password, min_length=1)

    identity = _find_by_email(email)

    if identity is None:
        logger.warning("Login gagal: email tidak dikenal")
        _reject_credentials(None, f"Login dengan email tidak dikenal: {email}", origin)

    if not identity.password_hash:
        logger.warning("Login gagal: identitas %s belum memiliki password", identity.id)
        _reject_credentials(identity, f"Identitas {email} belum memiliki password", origin)

    if not verify_password(password, identity.password_hash):
        logger.warning("Login gagal: password salah untuk identitas %s", identity.id)
        _reject_credentials(identity, f"Password salah untuk {email}", origin)

    has_face = identity.has_face

    if has_face and not identity.is_active:
        logger.warning("Login gagal: identitas %s dinonaktifkan", identity.id)
        _reject_credentials(identity, f"Identitas {email} dinonaktifkan", origin)

    if not has_face:
        audit_service.record(
            AuditAction.LOGIN_CREDENTIALS_VALIDATED,
            identity,
            f"Kredensial valid untuk {email}. Identitas belum memiliki registrasi wajah.",
            origin,
            success=True,
        )
        return {
            "message": "Kredensial valid. Silakan selesaikan registrasi wajah.",
            "requires_face_registration": True,
            "requires_face_verification": False,
        }

    audit_service.record(
        AuditAction.LOGIN_CREDENTIALS_VALIDATED,
        identity,
        f"Kredensial valid untuk {email}. Menunggu verifikasi wajah.",
        origin,
        success=True,
    )
    return {
        "message": "Kredensial valid. Silakan lanjutkan verifikasi wajah.",
        "requires_face_registration": False,
        "requires_face_verification": True,
    }


def verify_face_authentication(email, descriptor, origin: Origin | None = None):
    """
    Login tahap 2: bandingkan wajah dengan deskriptor tersimpan dan
    terbitkan token akses jika cocok.

    Returns:
        dict: { access_token, user: {id, email, name, role} }

    Raises:
        UnauthorizedError: Identitas tidak aktif/tidak ada, atau wajah tidak cocok.
        BadRequestError: Deskriptor tidak valid atau identitas belum punya wajah.
    """
    identity = None
    if isinstance(email, str) and email:
        identity = Identity.query.filter_by(email=email, is_active=True).first()

    if identity is None:
        audit_service.record(
            AuditAction.LOGIN_FACE_FAILED,
            None,
            f"Verifikasi wajah untuk identitas tidak dikenal atau tidak aktif: {email}",
            origin,
            success=False,
        )
        raise UnauthorizedError("Identitas tidak ditemukan atau tidak aktif")

    candidate = validate_descriptor(descriptor)

    if not identity.has_face:
        raise BadRequestError("Identitas belum memiliki registrasi wajah")

    matched, distance = compare_descriptors(identity.descriptor, candidate)

    if not matched:
        logger.warning(
            "Verifikasi wajah gagal untuk identitas %s (distance %.4f)",
            identity.id, distance
        )
        audit_service.record(
            AuditAction.LOGIN_FACE_FAILED,
            identity,
            f"Verifikasi wajah gagal untuk {email}. Distance: {distance:.4f}",
            origin,
            success=False,
        )
        raise UnauthorizedError("Wajah tidak cocok. Silakan coba lagi.")

    access_token = issue_token(identity)

    audit_service.record(
        AuditAction.LOGIN_SUCCESS,
        identity,
        f"Login berhasil untuk {email}. Distance wajah: {distance:.4f}",
        origin,
        success=True,
    )

    logger.info("Login berhasil: ID=%s", identity.id)

    return {
        "access_token": access_token,
        "user": identity.summary(),
    }
