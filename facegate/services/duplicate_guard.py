"""
Duplicate Enrollment Guard
===========================
Mencegah satu orang mendaftarkan beberapa identitas dengan wajah yang sama.

Pencarian dilakukan linear terhadap seluruh deskriptor yang terdaftar
(O(n) per pendaftaran). Jika populasi sudah besar, titik optimasinya
adalah indeks nearest-neighbor, dengan syarat semantik kecocokan
(jarak Euclidean < FACE_MATCH_THRESHOLD) tetap sama persis.
"""

import logging

from facegate.errors import ConflictError
from facegate.models.audit_event import AuditAction
from facegate.models.identity import Identity
from facegate.services import audit_service
from facegate.services.face_service import compare_descriptors, is_valid_descriptor

logger = logging.getLogger(__name__)

DUPLICATE_FACE_MESSAGE = (
    "Wajah ini sudah terdaftar di sistem. "
    "Jika Anda sudah memiliki akun, silakan login."
)


def _find_enrolled_identities(exclude_email: str | None):
    """Mengambil semua identitas yang memiliki deskriptor, kecuali exclude_email."""
    query = Identity.query.filter(Identity.face_descriptor.isnot(None))

    if exclude_email is not None:
        query = query.filter(Identity.email != exclude_email)

    return query.all()


def find_duplicate(candidate: list[float], exclude_email: str | None = None):
    """
    Mencari identitas yang deskriptornya cocok dengan kandidat.

    Returns:
        tuple: (identity, distance) untuk kecocokan pertama, atau (None, None).
    """
    for identity in _find_enrolled_identities(exclude_email):
        stored = identity.descriptor
        if not is_valid_descriptor(stored):
            continue

        matched, distance = compare_descriptors(stored, candidate)
        if matched:
            return identity, distance

    return None, None


def check_no_duplicate(candidate: list[float], exclude_email: str | None = None,
                       origin=None) -> None:
    """
    Menolak pendaftaran wajah yang sudah dimiliki identitas lain.

    Args:
        candidate: Deskriptor yang sudah divalidasi.
        exclude_email: Email identitas yang sedang mendaftar (dikecualikan).
        origin: Asal request untuk audit.

    Raises:
        ConflictError: Jika wajah cocok dengan identitas lain. Identitas
            yang cocok hanya disebut di catatan audit, tidak di error.
    """
    existing, distance = find_duplicate(candidate, exclude_email)

    if existing is None:
        return

    logger.warning(
        "Percobaan registrasi wajah duplikat untuk %s (distance %.4f)",
        exclude_email, distance
    )

    audit_service.record(
        AuditAction.DUPLICATE_FACE_ATTEMPT,
        None,
        f"Percobaan registrasi dengan wajah duplikat oleh {exclude_email}. "
        f"Cocok dengan identitas: {existing.email} (distance {distance:.4f})",
        origin,
        success=False,
    )

    raise ConflictError(DUPLICATE_FACE_MESSAGE)
