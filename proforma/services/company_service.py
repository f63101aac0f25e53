from __future__ import annotations
from typing import Any, List, Mapping, Union

from proforma.models.company import Company, CompanyIn
from proforma.services.entity_service import ApiEntityService


class CompanyService(ApiEntityService[Company]):
    model = Company
    input_model = CompanyIn
    path = "companies"
    entity_name = "company"

    def list_companies(self) -> List[Company]:
        return self._list()

    def get_by_id(self, company_id: str) -> Company:
        return self._get(company_id)

    def add_company(self, company: Union[CompanyIn, Mapping[str, Any]]) -> Company:
        return self._add(company)

    def update_company(self, company_id: str, changes: Union[CompanyIn, Mapping[str, Any]]) -> Company:
        return self._update(company_id, changes)

    def delete_company(self, company_id: str) -> None:
        self._delete(company_id)
