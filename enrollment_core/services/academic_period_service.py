# enrollment_core/services/academic_period_service.py
import logging
import math
from datetime import datetime
from typing import Iterable, List, Union

from .base_service import BaseService
from ..core.http_client import RequestExecutor
from ..schemas.academic_period_schemas import (
    AcademicPeriod,
    AcademicPeriodCreate,
    AcademicPeriodStats,
    AcademicPeriodUpdate,
)
from ..schemas.enums import PeriodStatus

logger = logging.getLogger(__name__)


class AcademicPeriodService(BaseService[AcademicPeriod]):
    def __init__(self, executor: RequestExecutor):
        super().__init__(AcademicPeriod, executor, "/academic-periods")

    async def list_all(self) -> List[AcademicPeriod]:
        return await self.get_multi()

    async def list_by_institution(self, institution_id: str) -> List[AcademicPeriod]:
        institution_id = self.require_id(institution_id, "institutionId")
        return await self.get_multi(f"{self.resource_path}/institution/{institution_id}")

    async def list_by_year(self, academic_year: str) -> List[AcademicPeriod]:
        academic_year = self.require_id(academic_year, "academicYear")
        return await self.get_multi(f"{self.resource_path}/year/{academic_year}")

    async def create(self, period: Union[AcademicPeriodCreate, dict]) -> AcademicPeriod:
        if isinstance(period, dict):
            period = AcademicPeriodCreate.model_validate(period)
        logger.debug(f"Creating academic period: {period.period_name}")
        return await super().create(period)

    async def update(self, id: str, period: Union[AcademicPeriodUpdate, dict]) -> AcademicPeriod:
        if isinstance(period, dict):
            period = AcademicPeriodUpdate.model_validate(period)
        return await super().update(id, period)

    async def delete(self, id: str) -> None:
        """Soft delete"""
        await self.soft_delete(id)

    async def restore(self, id: str) -> AcademicPeriod:
        id = self.require_id(id)
        payload = await self.executor.patch(f"{self.resource_path}/{id}/restore")
        if payload is None:
            return await self.get(id)
        return self.parse(payload)


def period_stats(periods: Iterable[AcademicPeriod]) -> AcademicPeriodStats:
    stats = AcademicPeriodStats()
    for period in periods:
        stats.total += 1
        if period.status == PeriodStatus.ACTIVE:
            stats.active += 1
        elif period.status == PeriodStatus.INACTIVE:
            stats.inactive += 1
        elif period.status == PeriodStatus.PENDING:
            stats.pending += 1
        elif period.status == PeriodStatus.CLOSED:
            stats.closed += 1
    return stats


def period_duration_days(start_date: datetime, end_date: datetime) -> int:
    """Whole days covered by a window, rounded up"""
    seconds = abs((end_date - start_date).total_seconds())
    return math.ceil(seconds / 86400)
