# enrollment_core/client.py
"""Facade wiring the executors, services and business components together."""
import asyncio
import logging
from typing import List, Optional

import httpx

from .core.config import Settings, settings as default_settings
from .core.http_client import RequestExecutor, RetryPolicy
from .schemas.enrollment_schemas import Enrollment
from .services.academic_period_service import AcademicPeriodService
from .services.aggregation_service import AggregationService, EnrollmentDetail
from .services.enrollment_service import EnrollmentService
from .services.enrollment_state_machine import EnrollmentRoster, EnrollmentStateMachine
from .services.integration_service import IntegrationService
from .services.validation_service import EnrollmentGate

logger = logging.getLogger(__name__)


class EnrollmentCoreClient:
    """Entry point for callers.

    Usage::

        async with EnrollmentCoreClient() as core:
            await core.refresh()
            details = await core.roster_details()

    ``transport`` lets tests (or a proxy setup) replace the network layer; when given,
    the client builds and closes its own ``httpx.AsyncClient`` instances on top of it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.settings = settings or default_settings
        self.log = log or logger
        self._transport = transport
        self._owned_clients: List[httpx.AsyncClient] = []

        policy = RetryPolicy.from_settings(self.settings)
        self.enrollment_executor = self._executor("enrollment", self.settings.enrollment_api_url, policy)
        self.student_executor = self._executor("student", self.settings.student_base_url, policy)
        self.institution_executor = self._executor("institution", self.settings.institution_base_url, policy)

        self.roster = EnrollmentRoster()
        self.enrollments = EnrollmentService(self.enrollment_executor)
        self.periods = AcademicPeriodService(self.enrollment_executor)
        self.integration = IntegrationService(self.student_executor, self.institution_executor)
        self.state_machine = EnrollmentStateMachine(self.enrollments, self.roster)
        self.aggregator = AggregationService(self.integration, limit=self.settings.max_concurrent_requests)
        self.gate = EnrollmentGate(self.enrollments, self.periods, self.roster)

    def _executor(self, name: str, base_url: str, policy: RetryPolicy) -> RequestExecutor:
        client = None
        if self._transport is not None:
            client = httpx.AsyncClient(transport=self._transport, timeout=self.settings.request_timeout)
            self._owned_clients.append(client)
        return RequestExecutor(
            base_url,
            timeout=self.settings.request_timeout,
            retry_policy=policy,
            client=client,
            log=self.log,
            name=name,
        )

    async def refresh(self) -> EnrollmentRoster:
        """Reload the local view from the server (non-cancelled and cancelled lists)"""
        current, cancelled = await asyncio.gather(
            self.enrollments.list_non_cancelled(),
            self.enrollments.list_cancelled(),
        )
        self.roster.load([*current, *cancelled])
        self.log.info(f"Loaded {len(current)} current and {len(cancelled)} cancelled enrollments")
        return self.roster

    async def roster_details(self, include_cancelled: bool = False) -> List[EnrollmentDetail]:
        enrollments: List[Enrollment] = self.roster.all() if include_cancelled else self.roster.current
        return await self.aggregator.build_details(enrollments)

    async def close(self):
        for executor in (self.enrollment_executor, self.student_executor, self.institution_executor):
            await executor.aclose()
        for client in self._owned_clients:
            await client.aclose()
        self._owned_clients = []

    async def __aenter__(self) -> "EnrollmentCoreClient":
        self.log.info(
            f"Enrollment core started ({self.settings.environment}): {self.settings.enrollment_api_url}"
        )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        self.log.info("Enrollment core shut down")
