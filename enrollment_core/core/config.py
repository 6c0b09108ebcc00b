# enrollment_core/core/config.py
"""Client configuration using Pydantic settings."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    enrollment_api_url: str = 'http://localhost:9082/api/v1'
    student_api_url: Optional[str] = None
    institution_api_url: Optional[str] = None

    request_timeout: float = 10.0
    max_retries: int = 3
    retry_backoff: float = 0.0
    retry_backoff_multiplier: float = 2.0
    max_concurrent_requests: int = 10

    environment: str = 'development'
    log_level: str = 'info'

    model_config = {
        'env_file': '.env',
        'env_prefix': 'ENROLLMENT_CORE_',
        'extra': 'ignore'
    }

    @property
    def student_base_url(self) -> str:
        return self.student_api_url or self.enrollment_api_url

    @property
    def institution_base_url(self) -> str:
        return self.institution_api_url or self.enrollment_api_url


settings = Settings()
