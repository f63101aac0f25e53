from __future__ import annotations
from typing import Any, List, Mapping, Union

from proforma.models.product import Product, ProductIn
from proforma.services.entity_service import ApiEntityService


class ProductService(ApiEntityService[Product]):
    model = Product
    input_model = ProductIn
    path = "products"
    entity_name = "product"

    def list_products(self) -> List[Product]:
        return self._list()

    def list_active_products(self) -> List[Product]:
        return [p for p in self._list() if p.active]

    def search(self, term: str) -> List[Product]:
        """Case-insensitive match on name or description (catalog picker)."""
        t = (term or "").strip().casefold()
        if not t:
            return self.list_active_products()
        return [
            p for p in self.list_active_products()
            if t in p.name.casefold() or t in (p.description or "").casefold()
        ]

    def get_by_id(self, product_id: str) -> Product:
        return self._get(product_id)

    def add_product(self, product: Union[ProductIn, Mapping[str, Any]]) -> Product:
        return self._add(product)

    def update_product(self, product_id: str, changes: Union[ProductIn, Mapping[str, Any]]) -> Product:
        return self._update(product_id, changes)

    def delete_product(self, product_id: str) -> None:
        self._delete(product_id)
