"""
Face Descriptor Service
========================
Validasi dan perbandingan deskriptor wajah 128 dimensi menggunakan
jarak Euclidean. Deskriptor dihasilkan oleh ekstraktor fitur eksternal
(di sisi klien) dan diperlakukan sebagai vektor angka biasa.
"""

import json
import logging
import math
import numbers
import numpy as np

from facegate.errors import BadRequestError, DimensionMismatchError

logger = logging.getLogger(__name__)

# Panjang deskriptor wajah yang valid
DESCRIPTOR_LENGTH = 128

# Jarak Euclidean di bawah nilai ini dianggap wajah yang sama
FACE_MATCH_THRESHOLD = 0.6


def validate_descriptor(value) -> list[float]:
    """
    Memvalidasi deskriptor dari input klien.

    Args:
        value: Nilai mentah dari request (harus list/tuple berisi 128 angka).

    Returns:
        list[float]: Deskriptor yang sudah dinormalisasi ke float.

    Raises:
        BadRequestError: Jika bukan list, panjang salah, atau ada elemen
            yang bukan angka berhingga.
    """
    if not isinstance(value, (list, tuple)):
        raise BadRequestError(
            f"Deskriptor wajah tidak valid. Harus berupa array {DESCRIPTOR_LENGTH} angka."
        )

    if len(value) != DESCRIPTOR_LENGTH:
        raise BadRequestError(
            f"Deskriptor wajah tidak valid. Harus memiliki {DESCRIPTOR_LENGTH} elemen."
        )

    descriptor = []
    for item in value:
        # bool adalah subclass int, tolak secara eksplisit
        if isinstance(item, bool) or not isinstance(item, numbers.Real):
            raise BadRequestError("Deskriptor wajah hanya boleh berisi angka.")
        number = float(item)
        if not math.isfinite(number):
            raise BadRequestError("Deskriptor wajah berisi nilai tidak berhingga.")
        descriptor.append(number)

    return descriptor


def is_valid_descriptor(value) -> bool:
    """True jika value adalah deskriptor tersimpan yang lengkap."""
    if not isinstance(value, list) or len(value) != DESCRIPTOR_LENGTH:
        return False
    return all(
        isinstance(item, numbers.Real) and not isinstance(item, bool)
        for item in value
    )


def euclidean_distance(a, b) -> float:
    """
    Menghitung jarak Euclidean antara dua deskriptor.

    Raises:
        DimensionMismatchError: Jika panjang kedua vektor berbeda.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Deskriptor harus memiliki panjang yang sama ({len(a)} != {len(b)})"
        )

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    diff = vec_a - vec_b

    return float(np.sqrt(np.sum(diff * diff)))


def compare_descriptors(
    stored,
    candidate,
    threshold: float = FACE_MATCH_THRESHOLD
) -> tuple[bool, float]:
    """
    Membandingkan deskriptor tersimpan dengan deskriptor kandidat.

    Returns:
        tuple: (is_match: bool, distance: float)
    """
    distance = euclidean_distance(stored, candidate)
    matched = distance < threshold

    logger.debug(
        "Perbandingan wajah - distance: %.4f, threshold: %.4f, cocok: %s",
        distance, threshold, matched
    )

    return matched, distance


def is_match(a, b, threshold: float = FACE_MATCH_THRESHOLD) -> bool:
    """True jika jarak kedua deskriptor lebih kecil dari threshold."""
    matched, _ = compare_descriptors(a, b, threshold)
    return matched


def serialize_descriptor(descriptor: list[float]) -> str:
    """Mengubah deskriptor menjadi JSON string untuk disimpan di database."""
    return json.dumps(descriptor)


def deserialize_descriptor(raw: str | None) -> list[float] | None:
    """
    Membaca deskriptor dari kolom database.

    Returns:
        list[float] atau None jika kosong / rusak.
    """
    if not raw:
        return None

    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Deskriptor tersimpan tidak bisa dibaca, diabaikan")
        return None

    if not isinstance(data, list):
        return None

    return data
