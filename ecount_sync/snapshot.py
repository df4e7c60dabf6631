from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ProductSnapshot:
    """Read-only view of the product fields pushed to ECOUNT."""

    master_code: str
    name: str
    barcode: str
    price_krw: int
    release_date: date
    display_status: bool
    inventory_track: bool
    label: Optional[str] = None
    description_html: Optional[str] = None
    stock_qty: Optional[int] = None
    unit: Optional[str] = 'EA'
    category_ids: tuple[str, ...] = ()

    @classmethod
    def from_product(cls, product) -> 'ProductSnapshot':
        """Build a snapshot from a catalog ``Product`` row."""
        return cls(
            master_code=product.master_code,
            name=product.name,
            label=product.label or None,
            barcode=product.barcode,
            price_krw=product.price_krw,
            release_date=product.release_date,
            description_html=product.description_html or None,
            display_status=product.display_status,
            inventory_track=product.inventory_track,
            stock_qty=(product.stock_qty or 0) if product.inventory_track else None,
            unit='EA',
            category_ids=_as_string_tuple(product.category_ids),
        )


def _as_string_tuple(value) -> tuple[str, ...]:
    """Coerce a JSON list of category ids to strings; anything else is empty."""
    if not isinstance(value, list):
        return ()
    entries = ('' if entry is None else str(entry) for entry in value)
    return tuple(entry for entry in entries if entry)
