# enrollment_core/schemas/common.py
"""Shared schema plumbing."""
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every payload exchanged with the services (camelCase on the wire)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )

    def to_payload(self, partial: bool = False) -> Dict[str, Any]:
        """Wire body; ``partial`` keeps only the fields the caller actually set"""
        return self.model_dump(by_alias=True, exclude_none=True, exclude_unset=partial, mode='json')


class ValidationResult(BaseModel):
    errors: Dict[str, str] = Field(default_factory=dict)
    warnings: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            errors={**self.errors, **other.errors},
            warnings={**self.warnings, **other.warnings},
        )
