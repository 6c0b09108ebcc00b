import logging

from conftest import enrollment_payload, reply

from enrollment_core import EnrollmentCoreClient
from enrollment_core.core.config import Settings
from enrollment_core.core.exceptions import (
    GENERIC_RETRY_MESSAGE,
    ServerError,
    TransportError,
    ValidationError,
    user_message,
)
from enrollment_core.core.logging import LOG_FORMAT, setup_logging


class TestSettings:
    def test_defaults(self):
        config = Settings()
        assert config.request_timeout == 10.0
        assert config.max_retries == 3
        assert config.student_base_url == config.enrollment_api_url
        assert config.institution_base_url == config.enrollment_api_url

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ENROLLMENT_CORE_MAX_RETRIES", "5")
        monkeypatch.setenv("ENROLLMENT_CORE_STUDENT_API_URL", "http://students.local/api")

        config = Settings()

        assert config.max_retries == 5
        assert config.student_base_url == "http://students.local/api"


class TestLogging:
    def test_setup_logging_returns_package_logger(self):
        assert setup_logging("debug").name == "enrollment_core"
        assert "%(levelname)s" in LOG_FORMAT


class TestUserMessage:
    def test_messages(self):
        assert user_message(ValidationError("Validation failed", {"shift": "Shift is required"})) == "shift: Shift is required"
        assert user_message(TransportError()) == GENERIC_RETRY_MESSAGE
        assert user_message(ServerError("stack trace")) == GENERIC_RETRY_MESSAGE
        assert user_message(RuntimeError("x")) == "Unknown error"


class TestEnrollmentCoreClient:
    async def test_refresh_and_details(self, backend, caplog):
        backend.on("GET", "/enrollments/active", reply(200, [enrollment_payload(id="a", enrollmentStatus="ACTIVE")]))
        backend.on("GET", "/enrollments/pending", reply(200, [enrollment_payload(id="b")]))
        backend.on("GET", "/enrollments/cancelled", reply(200, [enrollment_payload(id="c", enrollmentStatus="CANCELLED")]))
        config = Settings(enrollment_api_url="http://testserver/api/v1", max_retries=1)

        with caplog.at_level(logging.INFO):
            async with EnrollmentCoreClient(config, transport=backend.transport) as core:
                roster = await core.refresh()
                details = await core.roster_details()

        assert roster.stats().total == 2
        assert roster.stats().cancelled == 1
        assert [d.enrollment.id for d in details] == ["a", "b"]
        # no student/institution routes: every leg reports not found, nothing raises
        assert all(not d.complete for d in details)
        assert any("Enrollment core started" in r.getMessage() for r in caplog.records)
