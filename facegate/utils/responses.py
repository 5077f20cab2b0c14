"""
Utilitas Response API
======================
Helper functions untuk menghasilkan response JSON yang konsisten.
"""

from flask import jsonify


def success_response(data=None, message="Berhasil", status_code=200, meta=None):
    """
    Menghasilkan response sukses yang terstandarisasi.

    Args:
        data: Data yang dikembalikan (opsional).
        message: Pesan sukses.
        status_code: HTTP status code.
        meta: Informasi tambahan seperti pagination (opsional).

    Returns:
        tuple: (Response JSON, status_code)
    """
    response = {
        "success": True,
        "message": message,
    }
    if data is not None:
        response["data"] = data
    if meta is not None:
        response["meta"] = meta

    return jsonify(response), status_code


def error_response(message="Terjadi kesalahan", status_code=400, kind="bad_request", errors=None):
    """
    Menghasilkan response error yang terstandarisasi.

    Args:
        message: Pesan error yang bisa dibaca manusia.
        status_code: HTTP status code.
        kind: Jenis error yang stabil untuk klien.
        errors: Detail error tambahan (opsional).

    Returns:
        tuple: (Response JSON, status_code)
    """
    response = {
        "success": False,
        "error": kind,
        "message": message,
    }
    if errors is not None:
        response["errors"] = errors
    return jsonify(response), status_code


def service_error_response(error):
    """Menghasilkan response dari ServiceError."""
    return error_response(
        message=error.message,
        status_code=error.status_code,
        kind=error.kind,
    )


def created_response(data=None, message="Data berhasil ditambahkan"):
    """
    Menghasilkan response 201 Created.

    Args:
        data: Data yang baru dibuat.
        message: Pesan sukses.

    Returns:
        tuple: (Response JSON, 201)
    """
    return success_response(data=data, message=message, status_code=201)


def pagination_meta(paginated):
    """Meta informasi paginasi dari objek Pagination Flask-SQLAlchemy."""
    return {
        "current_page": paginated.page,
        "items_per_page": paginated.per_page,
        "total_pages": paginated.pages,
        "total_items": paginated.total,
        "has_next": paginated.has_next,
        "has_prev": paginated.has_prev
    }
