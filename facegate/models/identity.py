"""
Model Identity
===============
Menyimpan identitas pengguna: kredensial (hash password), deskriptor
wajah 128 dimensi, peran, dan status aktif.
"""

import enum
from datetime import datetime, timezone
from facegate.extensions import db
from facegate.services.face_service import (
    deserialize_descriptor,
    is_valid_descriptor,
    serialize_descriptor,
)


class Role(str, enum.Enum):
    ADMIN = "admin"
    CLIENT = "client"


class Identity(db.Model):
    """Model untuk menyimpan identitas pengguna."""

    __tablename__ = "identities"

    id = db.Column(db.String(36), primary_key=True)
    email = db.Column(
        db.String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Kunci unik, case-sensitive"
    )
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(
        db.String(255),
        nullable=True,
        comment="Hash bcrypt; kosong untuk akun yang belum diprovisi"
    )
    face_descriptor = db.Column(
        db.Text,
        nullable=True,
        comment="JSON: deskriptor wajah 128 dimensi"
    )
    role = db.Column(
        db.String(10),
        nullable=False,
        default=Role.CLIENT.value,
        comment="Peran: 'admin' atau 'client'"
    )
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self):
        return f"<Identity id={self.id} email={self.email} active={self.is_active}>"

    @property
    def descriptor(self) -> list[float] | None:
        return deserialize_descriptor(self.face_descriptor)

    @descriptor.setter
    def descriptor(self, value: list[float]):
        self.face_descriptor = serialize_descriptor(value)

    @property
    def has_face(self) -> bool:
        """True jika identitas sudah memiliki deskriptor wajah yang lengkap."""
        return is_valid_descriptor(self.descriptor)

    def summary(self):
        """Ringkasan identitas yang aman dikirim ke klien setelah login."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
        }

    def to_dict(self):
        """Konversi model ke dictionary untuk response API."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "has_face": self.has_face,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
