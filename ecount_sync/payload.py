import logging
import re
from datetime import date, datetime, timezone
from typing import Optional

from .snapshot import ProductSnapshot

logger = logging.getLogger(__name__)

ELLIPSIS = '...'
DESCRIPTION_LIMIT = 200

_TAG_RE = re.compile(r'<[^>]+>')
_WHITESPACE_RE = re.compile(r'\s+')


def truncate(value: Optional[str], length: int) -> str:
    """
    Cut ``value`` down to at most ``length`` characters.

    Long values end in '...' so the result is exactly ``length`` long.
    Lengths of 3 or less leave no room for the marker and are hard-cut.
    """
    if not value:
        return ''
    if len(value) <= length:
        return value
    if length <= 3:
        return value[:length]
    return value[:length - len(ELLIPSIS)] + ELLIPSIS


def clean_description(html: Optional[str]) -> str:
    """Plain-text remarks: tags stripped, whitespace collapsed, capped at 200 chars."""
    if not html:
        return ''
    text = _TAG_RE.sub(' ', html)
    return _WHITESPACE_RE.sub(' ', text).strip()[:DESCRIPTION_LIMIT]


def _as_utc_date(value) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def format_compact_date(value) -> str:
    return _as_utc_date(value).strftime('%Y%m%d')


def format_human_date(value) -> str:
    return _as_utc_date(value).strftime('%Y/%m/%d')


def _yes_no(flag: bool) -> str:
    return 'Y' if flag else 'N'


def _non_negative(value) -> str:
    return str(max(0, int(value)))


def build_bulk_datas(snapshot: ProductSnapshot) -> dict[str, str]:
    """
    Map a product snapshot to the flat ``BulkDatas`` record ECOUNT expects.

    Several fields are also sent under legacy alias names. Keys without a
    value are left out entirely; ECOUNT reads a missing key as "no value".
    """
    if len(snapshot.master_code or '') > 20:
        logger.warning("Master code %s is longer than 20 characters – PROD_CD will be truncated.",
                       snapshot.master_code)

    description = clean_description(snapshot.description_html)
    primary_category = next((cid for cid in snapshot.category_ids if cid and cid.strip()), None)
    price = _non_negative(snapshot.price_krw)
    barcode = truncate(snapshot.barcode, 30)

    stock = None
    if snapshot.inventory_track and snapshot.stock_qty is not None:
        stock = _non_negative(snapshot.stock_qty)

    data = {
        'PROD_CD': truncate(snapshot.master_code, 20),
        'PROD_DES': truncate(snapshot.name, 100),
        'SIZE_FLAG': '1',
        'SIZE_DES': truncate(snapshot.label or snapshot.name, 60),
        'UNIT': (snapshot.unit or 'EA').upper(),
        'BAL_FLAG': '1' if snapshot.inventory_track else '0',
        'STOCK_YN': _yes_no(snapshot.inventory_track),
        'DISPLAY_YN': _yes_no(snapshot.display_status),
        'BAR_CODE': barcode,
        'OUT_PRICE': price,
        'SAFE_STOCK_Q': stock,
        'REMARKS': description,
        'REMARKS_WIN': description,
        'VAT_YN': 'Y',
        'RELEASE_DATE': format_compact_date(snapshot.release_date),
        # legacy aliases
        'title': snapshot.name,
        'format': primary_category,
        '출고단가': price,
        '품목코드': barcode,
        '발매일': format_human_date(snapshot.release_date),
        '구매처': snapshot.label,
        '상품설명': description,
    }
    return prune_empty(data)


def prune_empty(data: dict) -> dict[str, str]:
    """Drop keys whose value is None or an empty string."""
    return {key: value for key, value in data.items() if isinstance(value, str) and value}
