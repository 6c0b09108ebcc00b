from .base_service import BaseService
from .enrollment_service import EnrollmentService
from .academic_period_service import AcademicPeriodService
from .integration_service import IntegrationService
from .enrollment_state_machine import EnrollmentRoster, EnrollmentStateMachine
from .aggregation_service import AggregationService, EnrollmentDetail, LegResult, LegState
from .validation_service import EnrollmentGate

__all__ = [
    "BaseService",
    "EnrollmentService",
    "AcademicPeriodService",
    "IntegrationService",
    "EnrollmentRoster",
    "EnrollmentStateMachine",
    "AggregationService",
    "EnrollmentDetail",
    "LegResult",
    "LegState",
    "EnrollmentGate",
]
