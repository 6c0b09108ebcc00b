import httpx

from conftest import classroom_payload, enrollment_payload, institution_payload, reply, student_payload

from enrollment_core.schemas.enrollment_schemas import Enrollment
from enrollment_core.schemas.enums import AgeGroup
from enrollment_core.services.aggregation_service import AggregationService, LegState
from enrollment_core.utils.settle import settle_all


def make_enrollment(**overrides) -> Enrollment:
    return Enrollment.model_validate(enrollment_payload(**overrides))


class TestSettleAll:
    async def test_keeps_every_outcome_in_key_order(self):
        async def ok():
            return "done"

        async def boom():
            raise RuntimeError("boom")

        results = await settle_all({"b": boom, "a": ok}, limit=1)
        assert list(results) == ["b", "a"]
        assert results["a"].ok and results["a"].value == "done"
        assert isinstance(results["b"].error, RuntimeError)


class TestEnrollmentDetail:
    async def test_failed_institution_leg_does_not_hide_the_others(self, backend, integration):
        backend.on("GET", "/integration/students/stu-1", reply(200, student_payload()))
        backend.on("GET", "/integration/institutions/inst-1", reply(503, {"message": "down"}))
        backend.on("GET", "/integration/classrooms/room-1", reply(200, classroom_payload()))

        detail = await AggregationService(integration).get_enrollment_detail(make_enrollment())

        assert detail.student.state == LegState.RESOLVED
        assert detail.student.value.full_name == "Lucia Quispe Mamani"
        assert detail.classroom.state == LegState.RESOLVED
        assert detail.classroom.value.age_group == AgeGroup.AGE_3
        assert detail.institution.state == LegState.ERROR
        assert detail.institution.value is None
        assert detail.institution.reason
        assert detail.failed_legs == ["institution"]
        assert not detail.complete

    async def test_missing_record_is_not_found(self, backend, integration):
        backend.on("GET", "/integration/students/stu-1", reply(404, {"message": "Student not found"}))
        backend.on("GET", "/integration/institutions/inst-1", reply(200, institution_payload()))
        backend.on("GET", "/integration/classrooms/room-1", reply(200, classroom_payload()))

        detail = await AggregationService(integration).get_enrollment_detail(make_enrollment())

        assert detail.student.state == LegState.NOT_FOUND
        assert detail.institution.value.name == "I.E.I. Los Angelitos"
        assert detail.failed_legs == []

    async def test_empty_id_skips_the_request(self, backend, integration):
        backend.on("GET", "/integration/students/stu-1", reply(200, student_payload()))
        backend.on("GET", "/integration/institutions/inst-1", reply(200, institution_payload()))

        detail = await AggregationService(integration).get_enrollment_detail(make_enrollment(classroomId=""))

        assert detail.classroom.state == LegState.NOT_FOUND
        assert detail.classroom.error is None
        assert not any("/classrooms/" in request.url.path for request in backend.calls)

    async def test_enveloped_and_flat_payloads(self, backend, integration):
        backend.on("GET", "/integration/students/stu-1", reply(200, {
            "success": True,
            "message": "ok",
            "data": {"studentId": "stu-1", "names": "Ana", "lastNames": "Rojas"},
        }))
        backend.on("GET", "/integration/institutions/inst-1", reply(200, {
            "institutionId": "inst-1", "name": "Cuna Jardin", "classrooms": None,
        }))
        backend.on("GET", "/integration/classrooms/room-1", reply(200, {"id": "room-1", "name": "Aula Sol"}))

        detail = await AggregationService(integration).get_enrollment_detail(make_enrollment())

        assert detail.student.value.full_name == "Ana Rojas"
        assert detail.institution.value.name == "Cuna Jardin"
        assert detail.institution.value.classrooms == []
        assert detail.classroom.value.classroom_name == "Aula Sol"
        assert detail.complete


class TestBuildDetails:
    async def test_each_distinct_id_fetched_once(self, backend, integration):
        backend.on("GET", "/integration/students/stu-1", reply(200, student_payload()))
        backend.on("GET", "/integration/students/stu-2", httpx.ConnectError("down"))
        backend.on("GET", "/integration/institutions/inst-1", reply(200, institution_payload()))
        backend.on("GET", "/integration/classrooms/room-1", reply(200, classroom_payload()))
        enrollments = [
            make_enrollment(id="e1"),
            make_enrollment(id="e2", studentId="stu-2"),
            make_enrollment(id="e3"),
        ]

        details = await AggregationService(integration, limit=2).build_details(enrollments)

        assert [d.enrollment.id for d in details] == ["e1", "e2", "e3"]
        assert backend.count("GET", "/integration/students/stu-1") == 1
        assert backend.count("GET", "/integration/institutions/inst-1") == 1
        assert backend.count("GET", "/integration/classrooms/room-1") == 1
        assert details[0].student.is_resolved and details[2].student.is_resolved
        assert details[1].student.state == LegState.ERROR
        assert details[1].institution.is_resolved

    async def test_resolve_students_by_unique_key(self, backend, integration):
        backend.on("GET", "/integration/students/stu-1", reply(200, student_payload()))

        results = await AggregationService(integration).resolve_students(["stu-1", None, "stu-1", ""])

        assert list(results) == ["stu-1"]
        assert results["stu-1"].value.student_id == "stu-1"
        assert backend.count("GET", "/integration/students/stu-1") == 1
