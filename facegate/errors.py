"""
Taksonomi Error
================
Semua kegagalan di lapisan inti dilempar sebagai subclass ServiceError.
Setiap error membawa `kind` yang stabil untuk klien dan pesan yang bisa
dibaca manusia. Detail internal (misal identitas mana yang cocok dengan
wajah duplikat) tidak pernah masuk ke sini, hanya ke catatan audit.
"""


class ServiceError(Exception):
    """Error dasar; dipetakan ke response JSON oleh error handler aplikasi."""

    kind = "internal_error"
    status_code = 500
    default_message = "Terjadi kesalahan pada server"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ServiceError):
    kind = "bad_request"
    status_code = 400
    default_message = "Request tidak valid"


class DimensionMismatchError(BadRequestError):
    kind = "dimension_mismatch"
    default_message = "Panjang deskriptor tidak sama"


class UnauthorizedError(ServiceError):
    kind = "unauthorized"
    status_code = 401
    default_message = "Kredensial tidak valid"


class ForbiddenError(ServiceError):
    kind = "forbidden"
    status_code = 403
    default_message = "Akses ditolak"


class NotFoundError(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "Data tidak ditemukan"


class ConflictError(ServiceError):
    kind = "conflict"
    status_code = 409
    default_message = "Data sudah terdaftar"


class AuditWriteError(ServiceError):
    """Catatan audit gagal disimpan; operasi pemanggil harus ikut gagal."""

    kind = "audit_failure"
    default_message = "Gagal mencatat audit, operasi dibatalkan"
