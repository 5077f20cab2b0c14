"""
Tests untuk state machine registrasi dan login (auth_service).

This test suite verifies:
- Registrasi mandiri (start -> verify face -> aktif)
- Jalur provisi admin (complete_face_registration)
- Penolakan wajah duplikat
- Login dua tahap dan jejak audit yang dihasilkan

Run with: pytest tests/test_auth_service.py -v
"""

import threading
import time

import jwt
import pytest

from facegate.errors import (
    AuditWriteError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from facegate.extensions import db
from facegate.models.audit_event import AuditEvent
from facegate.models.identity import Identity
from facegate.services import auth_service, user_service
from facegate.services.audit_service import Origin
from facegate.services.face_service import euclidean_distance

ORIGIN = Origin(ip_address="192.168.1.10", user_agent="pytest-agent")


def make_descriptor(value=0.1):
    return [value] * 128


def actions(action=None):
    query = AuditEvent.query
    if action:
        query = query.filter_by(action=action)
    return query.all()


def register_active(email="a@x.com", name="Ana", password="password123", descriptor=None):
    auth_service.start_registration(email, name, password, ORIGIN)
    auth_service.verify_face_registration(email, descriptor or make_descriptor(0.1), ORIGIN)
    return Identity.query.filter_by(email=email).one()


class TestStartRegistration:

    def test_creates_pending_identity(self, app_ctx):
        result = auth_service.start_registration("a@x.com", "Ana", "password123", ORIGIN)

        identity = db.session.get(Identity, result["identity_id"])
        assert identity.email == "a@x.com"
        assert identity.role == "client"
        assert identity.is_active is False
        assert identity.face_descriptor is None
        assert identity.password_hash != "password123"

        audit_event = AuditEvent.query.one()
        assert audit_event.action == "registration_started"
        assert audit_event.identity_id == identity.id
        assert audit_event.ip_address == "192.168.1.10"

    def test_duplicate_email_is_conflict(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123")

        with pytest.raises(ConflictError):
            auth_service.start_registration("a@x.com", "Other", "password456")

        assert Identity.query.count() == 1

    def test_email_is_case_sensitive(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123")
        auth_service.start_registration("A@x.com", "Ana", "password123")

        assert Identity.query.count() == 2

    @pytest.mark.parametrize("email, name, password", [
        ("not-an-email", "Ana", "password123"),
        (None, "Ana", "password123"),
        ("a@x.com", "An", "password123"),
        ("a@x.com", "Ana", "short"),
        ("a@x.com", "Ana", None),
    ])
    def test_invalid_input_is_bad_request(self, app_ctx, email, name, password):
        with pytest.raises(BadRequestError):
            auth_service.start_registration(email, name, password)

        assert Identity.query.count() == 0
        assert AuditEvent.query.count() == 0


class TestVerifyFaceRegistration:

    def test_activates_identity(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123", ORIGIN)
        result = auth_service.verify_face_registration("a@x.com", make_descriptor(0.1), ORIGIN)

        identity = db.session.get(Identity, result["identity_id"])
        assert identity.is_active is True
        assert identity.descriptor == make_descriptor(0.1)
        assert len(actions("registration_completed")) == 1

    def test_unknown_email_is_not_found(self, app_ctx):
        with pytest.raises(NotFoundError):
            auth_service.verify_face_registration("ghost@x.com", make_descriptor())

    def test_already_active_is_bad_request(self, app_ctx):
        register_active()

        with pytest.raises(BadRequestError):
            auth_service.verify_face_registration("a@x.com", make_descriptor(0.1))

    def test_deactivated_identity_cannot_reenroll(self, app_ctx):
        """Deaktivasi admin tidak bisa dibatalkan dengan wajah baru."""
        identity = register_active("a@x.com", descriptor=make_descriptor(0.1))
        admin = user_service.create_identity("admin@x.com", "Admin", role="admin")
        user_service.update_identity(identity.id, {"is_active": False}, admin)

        with pytest.raises(BadRequestError):
            auth_service.verify_face_registration("a@x.com", make_descriptor(0.9), ORIGIN)

        identity = db.session.get(Identity, identity.id)
        assert identity.is_active is False
        assert identity.descriptor == make_descriptor(0.1)
        assert len(actions("registration_completed")) == 1

    def test_malformed_descriptor_is_rejected_before_storage(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123")

        with pytest.raises(BadRequestError):
            auth_service.verify_face_registration("a@x.com", [0.1] * 127)

        identity = Identity.query.one()
        assert identity.face_descriptor is None
        assert identity.is_active is False
        assert actions("registration_completed") == []

    def test_duplicate_face_scenario(self, app_ctx):
        """a@x.com terdaftar dengan D; b@x.com dengan D yang sama ditolak."""
        register_active("a@x.com", "Ana", "password123", make_descriptor(0.1))

        auth_service.start_registration("b@x.com", "Budi", "password123", ORIGIN)
        with pytest.raises(ConflictError):
            auth_service.verify_face_registration("b@x.com", make_descriptor(0.1), ORIGIN)

        b = Identity.query.filter_by(email="b@x.com").one()
        assert b.is_active is False
        assert b.face_descriptor is None
        assert Identity.query.filter_by(email="b@x.com", is_active=True).first() is None

        duplicate_events = actions("duplicate_face_attempt")
        assert len(duplicate_events) == 1
        assert duplicate_events[0].identity_id is None
        assert actions("registration_completed")[0].identity_id != b.id

    def test_near_duplicate_face_is_conflict(self, app_ctx):
        d1 = make_descriptor(0.1)
        d2 = make_descriptor(0.13)
        assert euclidean_distance(d1, d2) < 0.6

        register_active("a@x.com", descriptor=d1)
        auth_service.start_registration("b@x.com", "Budi", "password123")

        with pytest.raises(ConflictError):
            auth_service.verify_face_registration("b@x.com", d2)

    def test_distinct_faces_both_register(self, app_ctx):
        register_active("a@x.com", descriptor=make_descriptor(0.1))
        register_active("b@x.com", descriptor=make_descriptor(0.3))

        assert Identity.query.filter_by(is_active=True).count() == 2

    def test_audit_failure_keeps_identity_inactive(self, app_ctx, monkeypatch):
        auth_service.start_registration("a@x.com", "Ana", "password123")

        def failing_record(*args, **kwargs):
            raise AuditWriteError()

        monkeypatch.setattr(auth_service.audit_service, "record", failing_record)
        with pytest.raises(AuditWriteError):
            auth_service.verify_face_registration("a@x.com", make_descriptor(0.1))
        monkeypatch.undo()

        db.session.rollback()
        identity = Identity.query.one()
        assert identity.is_active is False
        assert identity.face_descriptor is None


class TestCompleteFaceRegistration:

    def test_admin_provisioned_identity_completes(self, app_ctx):
        user_service.create_identity("c@x.com", "Carla", password="password123")

        auth_service.complete_face_registration("c@x.com", make_descriptor(0.2), ORIGIN)

        identity = Identity.query.filter_by(email="c@x.com").one()
        assert identity.is_active is True
        assert identity.has_face
        assert len(actions("face_registration_completed")) == 1

    def test_unknown_email_is_not_found(self, app_ctx):
        with pytest.raises(NotFoundError):
            auth_service.complete_face_registration("ghost@x.com", make_descriptor())

    def test_identity_with_face_is_bad_request(self, app_ctx):
        register_active("a@x.com")

        with pytest.raises(BadRequestError):
            auth_service.complete_face_registration("a@x.com", make_descriptor(0.5))

    def test_duplicate_face_is_conflict(self, app_ctx):
        register_active("a@x.com", descriptor=make_descriptor(0.1))
        user_service.create_identity("c@x.com", "Carla", password="password123")

        with pytest.raises(ConflictError):
            auth_service.complete_face_registration("c@x.com", make_descriptor(0.1))

        assert Identity.query.filter_by(email="c@x.com").one().is_active is False

    def test_malformed_descriptor_is_bad_request(self, app_ctx):
        user_service.create_identity("c@x.com", "Carla", password="password123")

        with pytest.raises(BadRequestError):
            auth_service.complete_face_registration("c@x.com", ["x"] * 128)


class TestStartAuthentication:

    def test_without_descriptor_requires_face_registration(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123")

        result = auth_service.start_authentication("a@x.com", "password123", ORIGIN)

        assert result["requires_face_registration"] is True
        assert result["requires_face_verification"] is False
        assert len(actions("login_credentials_validated")) == 1

    def test_with_descriptor_requires_face_verification(self, app_ctx):
        register_active()

        result = auth_service.start_authentication("a@x.com", "password123", ORIGIN)

        assert result["requires_face_registration"] is False
        assert result["requires_face_verification"] is True

    def test_wrong_password(self, app_ctx):
        register_active()
        before = Identity.query.count()

        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.start_authentication("a@x.com", "wrong-password", ORIGIN)

        failed = actions("login_failed")
        assert len(failed) == 1
        assert failed[0].success is False
        assert failed[0].identity_id is not None
        assert Identity.query.count() == before
        assert actions("login_credentials_validated") == []
        assert exc_info.value.message == auth_service.INVALID_CREDENTIALS_MESSAGE

    def test_wrong_password_does_not_activate(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123")

        with pytest.raises(UnauthorizedError):
            auth_service.start_authentication("a@x.com", "wrong-password")

        assert Identity.query.one().is_active is False
        assert len(actions("login_failed")) == 1

    def test_unknown_email_same_error(self, app_ctx):
        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.start_authentication("ghost@x.com", "password123")

        assert exc_info.value.message == auth_service.INVALID_CREDENTIALS_MESSAGE
        assert Identity.query.count() == 0
        assert len(actions("login_failed")) == 1

    def test_identity_without_password(self, app_ctx):
        user_service.create_identity("c@x.com", "Carla")

        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.start_authentication("c@x.com", "password123")

        assert exc_info.value.message == auth_service.INVALID_CREDENTIALS_MESSAGE
        assert len(actions("login_failed")) == 1

    def test_deactivated_identity_rejected(self, app_ctx):
        identity = register_active()
        identity.is_active = False
        db.session.commit()

        with pytest.raises(UnauthorizedError):
            auth_service.start_authentication("a@x.com", "password123")

        assert len(actions("login_failed")) == 1

    @pytest.mark.parametrize("email,password", [
        ("bukan-email", "password123"),
        (None, "password123"),
        ("a@x.com", ""),
        ("a@x.com", None),
    ])
    def test_malformed_input_is_bad_request_without_audit(self, app_ctx, email, password):
        register_active()
        before = len(actions())

        with pytest.raises(BadRequestError):
            auth_service.start_authentication(email, password, ORIGIN)

        assert len(actions()) == before
        assert actions("login_failed") == []


class TestVerifyFaceAuthentication:

    def test_match_issues_token(self, app_ctx):
        identity = register_active(descriptor=make_descriptor(0.1))

        result = auth_service.verify_face_authentication(
            "a@x.com", make_descriptor(0.12), ORIGIN
        )

        payload = jwt.decode(
            result["access_token"], app_ctx.config["JWT_SECRET"], algorithms=["HS256"]
        )
        assert payload["sub"] == identity.id
        assert payload["email"] == "a@x.com"
        assert payload["role"] == "client"
        assert result["user"] == {
            "id": identity.id, "email": "a@x.com", "name": "Ana", "role": "client",
        }

        success = actions("login_success")
        assert len(success) == 1
        assert "0.2263" in success[0].details
        assert actions("login_face_failed") == []

    def test_no_match_is_unauthorized(self, app_ctx):
        register_active(descriptor=make_descriptor(0.1))

        with pytest.raises(UnauthorizedError):
            auth_service.verify_face_authentication("a@x.com", make_descriptor(0.2), ORIGIN)

        failed = actions("login_face_failed")
        assert len(failed) == 1
        assert failed[0].success is False
        assert "1.1314" in failed[0].details
        assert actions("login_success") == []

    def test_distance_at_threshold_is_rejected(self, app_ctx):
        stored = [0.0] * 128
        candidate = [0.0] * 128
        candidate[0] = 0.75
        register_active(descriptor=stored)

        with pytest.raises(UnauthorizedError):
            auth_service.verify_face_authentication("a@x.com", candidate)

        assert len(actions("login_face_failed")) == 1

    def test_pending_identity_is_unauthorized(self, app_ctx):
        auth_service.start_registration("a@x.com", "Ana", "password123")

        with pytest.raises(UnauthorizedError):
            auth_service.verify_face_authentication("a@x.com", make_descriptor())

    def test_unknown_identity_is_unauthorized(self, app_ctx):
        with pytest.raises(UnauthorizedError):
            auth_service.verify_face_authentication("ghost@x.com", make_descriptor())

    def test_malformed_descriptor_is_bad_request(self, app_ctx):
        register_active()

        with pytest.raises(BadRequestError):
            auth_service.verify_face_authentication("a@x.com", [0.1] * 10)

        assert actions("login_face_failed") == []
        assert actions("login_success") == []

    def test_active_identity_with_corrupt_descriptor(self, app_ctx):
        identity = register_active()
        identity.face_descriptor = "[0.1, 0.2]"
        db.session.commit()

        with pytest.raises(BadRequestError):
            auth_service.verify_face_authentication("a@x.com", make_descriptor())

    def test_full_login_flow(self, app_ctx):
        register_active(descriptor=make_descriptor(0.1))

        step1 = auth_service.start_authentication("a@x.com", "password123", ORIGIN)
        assert step1["requires_face_verification"] is True

        step2 = auth_service.verify_face_authentication("a@x.com", make_descriptor(0.1), ORIGIN)
        assert step2["access_token"]

        assert sorted(e.action for e in AuditEvent.query.all()) == [
            "login_credentials_validated",
            "login_success",
            "registration_completed",
            "registration_started",
        ]


class TestConcurrentEnrollment:
    """Dua pendaftaran wajah yang saling cocok, dijalankan bersamaan."""

    def test_only_one_matching_face_is_enrolled(self, file_app, monkeypatch):
        with file_app.app_context():
            auth_service.start_registration("a@x.com", "Ana", "password123")
            auth_service.start_registration("b@x.com", "Budi", "password123")

        check = auth_service.check_no_duplicate

        def slow_check(*args, **kwargs):
            # Perlebar jeda antara scan duplikat dan penyimpanan deskriptor
            check(*args, **kwargs)
            time.sleep(0.2)

        monkeypatch.setattr(auth_service, "check_no_duplicate", slow_check)

        barrier = threading.Barrier(2)
        results = {}

        def enroll(email, descriptor):
            with file_app.app_context():
                barrier.wait()
                try:
                    auth_service.verify_face_registration(email, descriptor)
                    results[email] = None
                except Exception as e:
                    results[email] = e

        threads = [
            threading.Thread(target=enroll, args=("a@x.com", make_descriptor(0.1))),
            threading.Thread(target=enroll, args=("b@x.com", make_descriptor(0.12))),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(results) == ["a@x.com", "b@x.com"]
        errors = [e for e in results.values() if e is not None]
        assert len(errors) == 1
        assert isinstance(errors[0], ConflictError)

        with file_app.app_context():
            assert Identity.query.filter_by(is_active=True).count() == 1
            assert len(actions("duplicate_face_attempt")) == 1
            assert len(actions("registration_completed")) == 1
