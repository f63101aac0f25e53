from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python

from proforma.models.common import ApiModel
from proforma.storage.api_client import ApiClient

log = logging.getLogger(__name__)

T = TypeVar("T", bound=ApiModel)


class ApiEntityService(Generic[T]):
    """
    CRUD over one API collection (/companies, /customers, /products).
    - `model` parses responses, `input_model` validates creations
    - updates are partial: only the given fields are sent
    """

    model: Type[T]
    input_model: Type[ApiModel]
    path: str = ""
    entity_name: str = "entity"

    def __init__(self, api: Optional[ApiClient] = None) -> None:
        self.api = api or ApiClient()

    # ---------------- Helpers ---------------- #

    def _wire_changes(self, changes: Union[ApiModel, Mapping[str, Any]]) -> Dict[str, Any]:
        if isinstance(changes, ApiModel):
            return changes.model_dump(mode="json", by_alias=True, exclude_unset=True)
        fields = self.input_model.model_fields
        aliases = {to_camel(name): name for name in fields}
        out: Dict[str, Any] = {}
        for key, value in changes.items():
            if key in fields:
                out[to_camel(key)] = value
            elif key in aliases:
                out[key] = value
            else:
                raise ValueError(f"Unknown {self.entity_name} field: {key}")
        return to_jsonable_python(out)

    # ---------------- CRUD ---------------- #

    def _list(self) -> List[T]:
        data = self.api.get(self.path)
        if isinstance(data, dict):
            data = data.get("data") or []
        out: List[T] = []
        for d in data or []:
            try:
                out.append(self.model.model_validate(d))
            except ValidationError as e:
                log.warning("Skipping invalid %s %s: %s", self.entity_name,
                            d.get("id") if isinstance(d, dict) else d, e)
        return out

    def _get(self, obj_id: str) -> T:
        return self.model.model_validate(self.api.get(f"{self.path}/{obj_id}"))

    def _add(self, item: Union[ApiModel, Mapping[str, Any]]) -> T:
        if not isinstance(item, self.input_model):
            item = self.input_model.model_validate(dict(item) if isinstance(item, Mapping) else item.model_dump())
        created = self.model.model_validate(self.api.post(self.path, item.to_wire()))
        log.info("%s %s created", self.entity_name.capitalize(), getattr(created, "id", "?"))
        return created

    def _update(self, obj_id: str, changes: Union[ApiModel, Mapping[str, Any]]) -> T:
        body = self._wire_changes(changes)
        return self.model.model_validate(self.api.patch(f"{self.path}/{obj_id}", body))

    def _delete(self, obj_id: str) -> None:
        self.api.delete(f"{self.path}/{obj_id}")
        log.info("%s %s deleted", self.entity_name.capitalize(), obj_id)
