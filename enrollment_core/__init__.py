# enrollment_core/__init__.py
"""Enrollment orchestration core: lifecycle, normalization and time-window rules."""
from .client import EnrollmentCoreClient

__version__ = "1.0.0"

__all__ = ["EnrollmentCoreClient", "__version__"]
