"""
Credential Service
===================
Hash dan verifikasi password menggunakan bcrypt (salted, cost factor 10).
"""

import logging
import bcrypt

logger = logging.getLogger(__name__)

PASSWORD_HASH_ROUNDS = 10


def hash_password(password: str) -> str:
    """
    Membuat hash bcrypt dari password.

    Args:
        password: Password plaintext.

    Returns:
        str: Hash bcrypt (sudah berisi salt dan cost factor).
    """
    salt = bcrypt.gensalt(rounds=PASSWORD_HASH_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str | None, hashed: str | None) -> bool:
    """
    Memverifikasi password terhadap hash tersimpan.

    Fail closed: password kosong, hash kosong/rusak, atau error apa pun
    dari bcrypt menghasilkan False.
    """
    if not password or not hashed:
        return False

    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.warning("Verifikasi password gagal karena hash tidak valid: %s", str(e))
        return False
