# enrollment_core/services/enrollment_state_machine.py
"""Enrollment lifecycle: named transitions, each one remote status change.

The machine does not re-check the source state before calling the server; the
collaborator rejects invalid transitions. ``ALLOWED_TRANSITIONS`` only describes
which actions a caller should offer for a given status.
"""
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from .enrollment_service import EnrollmentService, filter_enrollments
from ..core.exceptions import NotFoundError
from ..schemas.enrollment_schemas import Enrollment, EnrollmentFilters, EnrollmentStats
from ..schemas.enums import EnrollmentStatus
from ..utils.normalizers import normalize_enrollment_status
from ..utils.settle import unique_keys

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[EnrollmentStatus, FrozenSet[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.CANCELLED, EnrollmentStatus.INACTIVE}),
    EnrollmentStatus.ACTIVE: frozenset({EnrollmentStatus.PENDING, EnrollmentStatus.CANCELLED, EnrollmentStatus.INACTIVE}),
    EnrollmentStatus.CANCELLED: frozenset({EnrollmentStatus.PENDING, EnrollmentStatus.INACTIVE}),
    # Administrative dead end: no modeled transition leaves INACTIVE
    EnrollmentStatus.INACTIVE: frozenset(),
}


def can_transition(current, target) -> bool:
    current = normalize_enrollment_status(current)
    target = normalize_enrollment_status(target)
    if not isinstance(current, EnrollmentStatus) or not isinstance(target, EnrollmentStatus):
        return False
    return target in ALLOWED_TRANSITIONS[current]


class EnrollmentRoster:
    """Local view state: non-cancelled and cancelled enrollments keyed by id.

    ``apply`` overwrites whatever is held for the id (last response wins) and moves the
    record to the bucket its status belongs to.
    """

    def __init__(self, enrollments: Iterable[Enrollment] = ()):
        self._current: Dict[str, Enrollment] = {}
        self._cancelled: Dict[str, Enrollment] = {}
        self.load(enrollments)

    def load(self, enrollments: Iterable[Enrollment]):
        self._current.clear()
        self._cancelled.clear()
        for enrollment in enrollments:
            self.apply(enrollment)

    def apply(self, enrollment: Enrollment) -> Enrollment:
        if not enrollment.id:
            logger.warning("Ignoring enrollment without id in local view")
            return enrollment
        self._current.pop(enrollment.id, None)
        self._cancelled.pop(enrollment.id, None)
        bucket = self._cancelled if enrollment.is_cancelled else self._current
        bucket[enrollment.id] = enrollment
        return enrollment

    def prune(self, id: str) -> Optional[Enrollment]:
        removed = self._current.pop(id, None)
        cancelled = self._cancelled.pop(id, None)
        return removed or cancelled

    def get(self, id: str) -> Optional[Enrollment]:
        return self._current.get(id) or self._cancelled.get(id)

    def __contains__(self, id) -> bool:
        return id in self._current or id in self._cancelled

    def __len__(self) -> int:
        return len(self._current) + len(self._cancelled)

    @property
    def current(self) -> List[Enrollment]:
        return list(self._current.values())

    @property
    def cancelled(self) -> List[Enrollment]:
        return list(self._cancelled.values())

    def all(self) -> List[Enrollment]:
        return self.current + self.cancelled

    def filter(self, filters: Optional[EnrollmentFilters] = None) -> List[Enrollment]:
        wants_cancelled = filters is not None and normalize_enrollment_status(filters.status) == EnrollmentStatus.CANCELLED
        source = self.cancelled if wants_cancelled else self.current
        return filter_enrollments(source, filters)

    def stats(self) -> EnrollmentStats:
        current = self.current
        return EnrollmentStats(
            total=len(current),
            active=sum(1 for e in current if e.status == EnrollmentStatus.ACTIVE),
            pending=sum(1 for e in current if e.status == EnrollmentStatus.PENDING),
            inactive=sum(1 for e in current if e.status == EnrollmentStatus.INACTIVE),
            cancelled=len(self._cancelled),
        )

    def student_ids(self) -> List[str]:
        return unique_keys(e.student_id for e in self.all())

    def institution_ids(self) -> List[str]:
        return unique_keys(e.institution_id for e in self.all())

    def classroom_ids(self) -> List[str]:
        return unique_keys(e.classroom_id for e in self.all())


class EnrollmentStateMachine:
    def __init__(self, service: EnrollmentService, roster: Optional[EnrollmentRoster] = None):
        self.service = service
        self.roster = roster

    async def activate(self, id: str) -> Enrollment:
        """PENDING -> ACTIVE"""
        return await self.transition(id, EnrollmentStatus.ACTIVE)

    async def cancel(self, id: str) -> Enrollment:
        """PENDING/ACTIVE -> CANCELLED"""
        return await self.transition(id, EnrollmentStatus.CANCELLED)

    async def restore(self, id: str) -> Enrollment:
        """CANCELLED -> PENDING (never straight back to ACTIVE)"""
        return await self.transition(id, EnrollmentStatus.PENDING)

    async def set_pending(self, id: str) -> Enrollment:
        """ACTIVE -> PENDING"""
        return await self.transition(id, EnrollmentStatus.PENDING)

    async def deactivate(self, id: str) -> Enrollment:
        """any -> INACTIVE; reserved for administrative use"""
        return await self.transition(id, EnrollmentStatus.INACTIVE)

    async def transition(self, id: str, target: EnrollmentStatus) -> Enrollment:
        logger.info(f"Changing status of enrollment {id} to {target.value}")
        try:
            record = await self.service.change_status(id, target)
        except NotFoundError:
            logger.warning(f"Enrollment {id} no longer exists on the server, removing it from the local view")
            if self.roster is not None:
                self.roster.prune(id)
            raise

        if not record.id:
            record = record.model_copy(update={"id": id})
        logger.info(f"Enrollment {record.id} is now {record.status.value}")
        if self.roster is not None:
            self.roster.apply(record)
        return record
