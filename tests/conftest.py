"""Shared fixtures: an in-memory backend behind httpx.MockTransport plus payload builders."""
import inspect
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from enrollment_core.core.http_client import RequestExecutor, RetryPolicy
from enrollment_core.services.academic_period_service import AcademicPeriodService
from enrollment_core.services.enrollment_service import EnrollmentService
from enrollment_core.services.integration_service import IntegrationService

BASE_URL = "http://testserver/api/v1"
PREFIX = "/api/v1"


def reply(status_code: int = 200, json: Any = None, text: str = None) -> Callable:
    """Build a fresh response for every matching request"""
    def respond(request: httpx.Request) -> httpx.Response:
        if text is not None:
            return httpx.Response(status_code, text=text)
        if json is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=json)
    return respond


class FakeBackend:
    """Routes requests by (method, path) and records every call.

    Each route holds a queue of handlers; the last one keeps answering once the
    others are used up. A handler may be a callable or an exception to raise.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, *handlers):
        self.routes[(method.upper(), path)] = list(handlers)
        return self

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path.startswith(PREFIX):
            path = path[len(PREFIX):]
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})

        handler = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(handler, Exception):
            raise handler
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def count(self, method: str, path: str) -> int:
        return sum(
            1 for request in self.calls
            if request.method == method.upper() and request.url.path == f"{PREFIX}{path}"
        )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def executor(backend):
    client = httpx.AsyncClient(transport=backend.transport)
    yield RequestExecutor(BASE_URL, timeout=1.0, retry_policy=RetryPolicy(max_attempts=3), client=client)
    await client.aclose()


@pytest.fixture
def enrollment_service(executor):
    return EnrollmentService(executor)


@pytest.fixture
def period_service(executor):
    return AcademicPeriodService(executor)


@pytest.fixture
def integration(executor):
    return IntegrationService(executor, executor)


def enrollment_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "enr-1",
        "studentId": "stu-1",
        "institutionId": "inst-1",
        "classroomId": "room-1",
        "academicYear": "2025",
        "academicPeriodId": "period-1",
        "enrollmentDate": "2025-03-02T00:00:00",
        "enrollmentStatus": "PENDING",
        "enrollmentType": "NUEVA",
        "ageGroup": "3_AÑOS",
        "studentAge": 3,
        "shift": "MAÑANA",
        "section": "UNICA",
        "modality": "PRESENCIAL",
        "educationalLevel": "INITIAL",
        "enrollmentCode": "MAT-2025-001",
        "birthCertificate": False,
        "studentDni": False,
        "guardianDni": False,
        "vaccinationCard": False,
        "disabilityCertificate": False,
        "utilityBill": False,
        "psychologicalReport": False,
        "studentPhoto": False,
        "healthRecord": False,
        "signedEnrollmentForm": False,
        "dniVerification": False,
        "deleted": False,
    }
    payload.update(overrides)
    return payload


def period_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "period-1",
        "institutionId": "inst-1",
        "academicYear": "2025",
        "periodName": "Año escolar 2025",
        "startDate": "2025-03-10T00:00:00",
        "endDate": "2025-12-15T00:00:00",
        "enrollmentPeriodStart": "2025-03-01T00:00:00",
        "enrollmentPeriodEnd": "2025-03-31T00:00:00",
        "allowLateEnrollment": True,
        "lateEnrollmentEndDate": "2025-04-15T00:00:00",
        "status": "ACTIVE",
        "deleted": False,
    }
    payload.update(overrides)
    return payload


def student_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "stu-1",
        "cui": "12345678",
        "personalInfo": {
            "names": "Lucia",
            "lastNames": "Quispe Mamani",
            "documentType": "DNI",
            "documentNumber": "12345678",
            "gender": "F",
            "dateOfBirth": "2021-05-04",
        },
        "status": "A",
    }
    payload.update(overrides)
    return payload


def institution_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "inst-1",
        "institutionInformation": {
            "institutionName": "I.E.I. Los Angelitos",
            "codeInstitution": "IEI-001",
            "institutionType": "PUBLICA",
            "institutionLevel": "INICIAL",
        },
        "status": "A",
    }
    payload.update(overrides)
    return payload


def classroom_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "room-1",
        "headquarterId": "hq-1",
        "classroomName": "Aula Girasoles",
        "classroomAge": "3 años",
        "capacity": 20,
        "color": "yellow",
        "status": "A",
    }
    payload.update(overrides)
    return payload
