"""Fake catalog adapter — in-memory products for development and tests."""

from allocation.catalog.port import CatalogPort, DeliveryPolicy


class FakeCatalog(CatalogPort):
    """Products registered with ``add_product``; everything else is unknown."""

    def __init__(self):
        self._products: dict[str, dict] = {}

    def add_product(
        self,
        product_id: str,
        delivery_type: str = "nationwide",
        allowed_zone_ids=None,
        variant_ids=(),
        delivery_notes: str | None = None,
    ) -> DeliveryPolicy:
        policy = DeliveryPolicy.from_dict(
            {
                "delivery_type": delivery_type,
                "allowed_zone_ids": allowed_zone_ids,
                "delivery_notes": delivery_notes,
            }
        )
        self._products[str(product_id)] = {
            "policy": policy,
            "variants": {str(v) for v in variant_ids},
        }
        return policy

    def clear(self) -> None:
        self._products.clear()

    def product_exists(self, product_id: str, variant_id: str | None = None) -> bool:
        product = self._products.get(str(product_id))
        if product is None:
            return False
        return variant_id is None or str(variant_id) in product["variants"]

    def delivery_policy(self, product_id: str) -> DeliveryPolicy | None:
        product = self._products.get(str(product_id))
        return product["policy"] if product else None
