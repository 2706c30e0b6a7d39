# Overview: Service-layer operations for unclaimed-stock aggregation and RTO sheet parsing.

"""
Inventory Service

Unclaimed order lines are grouped by a base SKU (the product code with its
size or variant suffix removed) and summarized per size, e.g.
"Player S-4, M-7, XL-2". SKU matching is a best-effort heuristic: codes
that follow none of the suffix conventions group under their own code.
"""

import csv
import logging
import re
import unicodedata

from ..extensions import db
from ..models import Order, Product


logger = logging.getLogger(__name__)

SIZE_ORDER = ["S", "M", "L", "XL", "2XL", "3XL", "4XL", "5XL"]
SIZE_WORDS = r"XS|S|M|L|XL|2XL|3XL|4XL|5XL|XXXL|XXL|Small|Medium|Large|Extra Large"

SKU_SUFFIX_PATTERNS = [
    re.compile(rf"[-_]({SIZE_WORDS})$", re.IGNORECASE),
    re.compile(r"[-_][0-9]+-[0-9]+$"),
    re.compile(r"[-_][0-9]+$"),
]
REPEATED_SEPARATORS = re.compile(r"[-_]{2,}")
SIZE_IN_CODE = re.compile(rf"[-_]({SIZE_WORDS})(?:[-_][0-9]+)*$", re.IGNORECASE)
SIZE_IN_NAME = re.compile(rf"[\s\-/(]+(?:size\s*)?({SIZE_WORDS})\)?\s*$", re.IGNORECASE)

RTO_REQUIRED_MESSAGE = "Missing required columns. Expected: Product_Name, Size, Quantity, Location"


class InventoryUploadError(Exception):
    """Raised when an uploaded RTO sheet cannot be used."""
    pass


def _strip_suffix(code: str, pattern: re.Pattern) -> str:
    stripped = pattern.sub("", code).strip()
    return REPEATED_SEPARATORS.sub("-", stripped)


def clean_sku_id(product_code: str | None) -> str:
    """
    Strip size and variant suffixes until the code stops changing.

    "TSHIRT-M-1" -> "TSHIRT-M" -> "TSHIRT"
    """
    code = REPEATED_SEPARATORS.sub("-", (product_code or "").strip())
    while code:
        for pattern in SKU_SUFFIX_PATTERNS:
            stripped = _strip_suffix(code, pattern)
            if stripped != code and stripped:
                code = stripped
                break
        else:
            break
    return code


def sku_candidates(product_code: str | None) -> list[str]:
    """Catalog lookup keys in preference order."""
    code = (product_code or "").strip()
    if not code:
        return []
    candidates = [code]
    for pattern in SKU_SUFFIX_PATTERNS:
        stripped = _strip_suffix(code, pattern)
        if stripped and stripped not in candidates:
            candidates.append(stripped)
    cleaned = clean_sku_id(code)
    if cleaned and cleaned not in candidates:
        candidates.append(cleaned)
    return candidates


def match_product(product_code: str | None, catalog: dict[str, Product]) -> Product | None:
    for candidate in sku_candidates(product_code):
        if candidate in catalog:
            return catalog[candidate]
    return None


def detect_size(order: Order) -> str:
    if order.size and order.size.strip():
        return order.size.strip().upper()
    match = SIZE_IN_CODE.search(order.product_code or "")
    if match:
        return match.group(1).upper()
    return "UNKNOWN"


def detect_product_prefix(product_name: str | None) -> str:
    if not product_name:
        return ""
    lowered = product_name.lower()
    if "player" in lowered:
        return "Player"
    if "fan" in lowered:
        return "Fan"
    return ""


def remove_size_from_product_name(product_name: str | None) -> str:
    if not product_name:
        return ""
    return SIZE_IN_NAME.sub("", product_name).strip() or product_name.strip()


def _size_rank(size: str) -> int:
    try:
        return SIZE_ORDER.index(size)
    except ValueError:
        return len(SIZE_ORDER)


def format_size_quantities(sizes: dict[str, int]) -> str:
    """Known sizes in size order, unknown sizes after them in first-seen order."""
    ordered = sorted(sizes.items(), key=lambda item: _size_rank(item[0]))
    return ", ".join(f"{size}-{qty}" for size, qty in ordered)


def product_name_sort_key(name: str) -> tuple[str, str]:
    """Case- and accent-insensitive order, so "Élan" sorts with the E names."""
    folded = unicodedata.normalize("NFKD", name.casefold())
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return base, name.casefold()


def aggregate_lines(orders: list[Order], catalog: dict[str, Product]) -> list[dict]:
    groups: dict[str, dict] = {}
    for order in orders:
        product = match_product(order.product_code, catalog)
        base_sku = product.sku_id if product else (clean_sku_id(order.product_code) or order.product_code or "")

        group = groups.get(base_sku)
        if group is None:
            name = (product.name if product else None) or order.product_name or base_sku
            group = {
                "productName": name,
                "baseProductName": remove_size_from_product_name(name),
                "imageUrl": product.image if product else None,
                "baseSku": base_sku,
                "prefix": detect_product_prefix(name),
                "sizes": {},
            }
            groups[base_sku] = group

        size = detect_size(order)
        group["sizes"][size] = group["sizes"].get(size, 0) + int(order.quantity or 0)

    products = []
    for group in groups.values():
        pairs = format_size_quantities(group.pop("sizes"))
        group["sizeQuantity"] = f"{group['prefix']} {pairs}" if group["prefix"] else pairs
        products.append(group)

    products.sort(key=lambda p: product_name_sort_key(p["productName"]))
    return products


def aggregate_unclaimed() -> dict:
    orders = (
        db.session.query(Order)
        .filter(Order.status == "unclaimed", Order.is_in_new_order.is_(True))
        .order_by(Order.product_name, Order.size, Order.unique_id)
        .all()
    )
    catalog = {p.sku_id: p for p in db.session.query(Product).all()}
    products = aggregate_lines(orders, catalog)
    logger.info("Aggregated %s unclaimed lines into %s products", len(orders), len(products))
    return {"totalProducts": len(products), "products": products}


def _column(headers: list[str], predicate) -> int:
    for index, header in enumerate(headers):
        if predicate(header.strip().lower()):
            return index
    return -1


def parse_rto_csv(raw: bytes) -> dict:
    """
    Parse an RTO sheet into Product_Name / Variant_Sku / Size / Quantity / Location rows.

    Headers match case-insensitively: "product_n" and "variant_sk" as
    substrings, size/quantity/location exactly.
    """
    text = raw.decode("utf-8-sig")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        raise InventoryUploadError("CSV file is empty")

    rows = list(csv.reader(lines))
    headers = [h.strip() for h in rows[0]]

    product_idx = _column(headers, lambda h: "product_n" in h)
    variant_idx = _column(headers, lambda h: "variant_sk" in h)
    size_idx = _column(headers, lambda h: h == "size")
    quantity_idx = _column(headers, lambda h: h == "quantity")
    location_idx = _column(headers, lambda h: h == "location")

    if min(product_idx, size_idx, quantity_idx, location_idx) < 0:
        raise InventoryUploadError(RTO_REQUIRED_MESSAGE)

    def cell(values: list[str], index: int) -> str:
        return values[index] if 0 <= index < len(values) else ""

    entries = []
    for raw_values in rows[1:]:
        values = [v.strip() for v in raw_values]
        if len(values) < 4 or not any(values):
            continue
        entry = {
            "Product_Name": cell(values, product_idx),
            "Variant_Sku": cell(values, variant_idx),
            "Location": cell(values, location_idx),
            "Size": cell(values, size_idx),
            "Quantity": cell(values, quantity_idx),
        }
        if entry["Product_Name"] or entry["Location"]:
            entries.append(entry)

    return {"totalEntries": len(entries), "rtoData": entries}
