from __future__ import annotations
from typing import Any, List, Mapping, Optional, Union

from proforma.models.customer import Customer, CustomerIn
from proforma.services.entity_service import ApiEntityService


class CustomerService(ApiEntityService[Customer]):
    model = Customer
    input_model = CustomerIn
    path = "customers"
    entity_name = "customer"

    def list_customers(self) -> List[Customer]:
        return self._list()

    def get_by_id(self, customer_id: str) -> Customer:
        return self._get(customer_id)

    def find_by_email(self, email: str) -> Optional[Customer]:
        wanted = (email or "").strip().casefold()
        if not wanted:
            return None
        for c in self.list_customers():
            if (c.email or "").strip().casefold() == wanted:
                return c
        return None

    def add_customer(self, customer: Union[CustomerIn, Mapping[str, Any]]) -> Customer:
        return self._add(customer)

    def update_customer(self, customer_id: str, changes: Union[CustomerIn, Mapping[str, Any]]) -> Customer:
        return self._update(customer_id, changes)

    def delete_customer(self, customer_id: str) -> None:
        self._delete(customer_id)
