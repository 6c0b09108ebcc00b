# enrollment_core/services/base_service.py
"""Base remote service with common CRUD operations."""
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as SchemaValidationError

from ..core.exceptions import NotFoundError, ResponseFormatError, ValidationError
from ..core.http_client import RequestExecutor
from ..schemas.common import WireModel
from ..utils.normalizers import envelope_failed, envelope_message, unwrap_envelope

logger = logging.getLogger(__name__)

# Define generic type
T = TypeVar('T', bound=BaseModel)


class BaseService(Generic[T]):
    def __init__(self, model: Type[T], executor: RequestExecutor, resource_path: str):
        self.model = model
        self.executor = executor
        self.resource_path = resource_path

    @staticmethod
    def require_id(value: Optional[str], label: str = "id") -> str:
        if value is None or not str(value).strip():
            raise ValidationError("Missing identifier", {label: f"{label} is required"})
        return str(value).strip()

    def parse(self, payload: Any) -> T:
        """Deserialize and normalize one record at the service boundary"""
        if envelope_failed(payload):
            raise NotFoundError(self.model.__name__, message=envelope_message(payload, f"{self.model.__name__} not available"))
        payload = unwrap_envelope(payload)
        if not isinstance(payload, dict):
            raise ResponseFormatError(f"Expected a {self.model.__name__} object, got {type(payload).__name__}")
        try:
            return self.model.model_validate(payload)
        except SchemaValidationError as e:
            raise ResponseFormatError(f"Invalid {self.model.__name__} payload: {e.error_count()} error(s)") from e

    def parse_many(self, payload: Any) -> List[T]:
        payload = unwrap_envelope(payload)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ResponseFormatError(f"Expected a list of {self.model.__name__}, got {type(payload).__name__}")

        items = []
        for raw in payload:
            try:
                items.append(self.parse(raw))
            except ResponseFormatError as e:
                logger.warning(f"Skipping malformed {self.model.__name__} record: {e.message}")
        return items

    @staticmethod
    def serialize(obj_in: Union[WireModel, Dict[str, Any]], partial: bool = False) -> Dict[str, Any]:
        if isinstance(obj_in, WireModel):
            return obj_in.to_payload(partial=partial)
        return dict(obj_in)

    async def get(self, id: str) -> T:
        id = self.require_id(id)
        payload = await self.executor.get(f"{self.resource_path}/{id}")
        return self.parse(payload)

    async def get_multi(self, path: Optional[str] = None) -> List[T]:
        payload = await self.executor.get(path or self.resource_path)
        return self.parse_many(payload)

    async def create(self, obj_in: Union[WireModel, Dict[str, Any]]) -> T:
        payload = await self.executor.post(self.resource_path, json=self.serialize(obj_in))
        return self.parse(payload)

    async def update(self, id: str, obj_in: Union[WireModel, Dict[str, Any]]) -> T:
        id = self.require_id(id)
        payload = await self.executor.put(f"{self.resource_path}/{id}", json=self.serialize(obj_in, partial=True))
        return self.parse(payload)

    async def soft_delete(self, id: str) -> None:
        id = self.require_id(id)
        await self.executor.delete(f"{self.resource_path}/{id}")
