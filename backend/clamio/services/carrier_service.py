# Overview: Service-layer operations for the per-store carrier priority ledger.

"""
Carrier Service

Carriers are ranked per store (account_code); priority 1 is preferred.
Reordering happens two ways:
- move up/down swaps priority with the adjacent carrier of the same store
- CSV import replaces priorities for every store it references, and must
  list every carrier already registered for those stores

CSV import is all-or-nothing: every row is validated before anything is
written.
"""

import csv
import io
import logging

from ..extensions import db
from ..models import Carrier, Store
from ..models.stores import CARRIER_STATUSES
from .concurrency import lock_for_update, run_with_retry


logger = logging.getLogger(__name__)

CSV_COLUMNS = ["carrier_id", "carrier_name", "status", "priority", "weight_in_kg", "account_code"]
REQUIRED_COLUMNS = ["carrier_id", "carrier_name", "status", "priority", "account_code"]


class CarrierNotFoundError(Exception):
    """Raised when a carrier is not found."""
    pass


class CarrierValidationError(Exception):
    """Raised when carrier input fails validation; `errors` lists row problems."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


def list_carriers(account_code: str | None = None) -> list[Carrier]:
    query = db.session.query(Carrier)
    if account_code:
        query = query.filter(Carrier.account_code == account_code)
    return query.order_by(Carrier.account_code, Carrier.priority).all()


def _resolve_store_code(carrier_id: str, account_code: str | None) -> str:
    if account_code:
        return account_code
    codes = [
        code for (code,) in db.session.query(Carrier.account_code)
        .filter(Carrier.carrier_id == carrier_id)
        .all()
    ]
    if not codes:
        raise CarrierNotFoundError("Carrier not found")
    if len(codes) > 1:
        raise CarrierValidationError("account_code is required: carrier exists in several stores")
    return codes[0]


def move_carrier(carrier_id: str, direction: str, account_code: str | None = None) -> dict:
    """
    Swap a carrier's priority with its neighbour in the same store.

    Moving the first carrier up or the last one down is a no-op and
    reports `moved: False`.
    """
    if direction not in ("up", "down"):
        raise CarrierValidationError("Direction must be 'up' or 'down'")

    carrier_id = str(carrier_id)
    account_code = _resolve_store_code(carrier_id, account_code)

    def _op():
        carriers = lock_for_update(
            db.session.query(Carrier)
            .filter(Carrier.account_code == account_code)
            .order_by(Carrier.priority)
        ).all()

        index = next((i for i, c in enumerate(carriers) if c.carrier_id == carrier_id), None)
        if index is None:
            db.session.rollback()
            raise CarrierNotFoundError("Carrier not found")

        neighbour = index - 1 if direction == "up" else index + 1
        if neighbour < 0 or neighbour >= len(carriers):
            db.session.rollback()
            return {"moved": False, "carriers": [c.to_dict() for c in carriers]}

        current, other = carriers[index], carriers[neighbour]
        current.priority, other.priority = other.priority, current.priority
        db.session.commit()

        ordered = sorted(carriers, key=lambda c: c.priority)
        return {"moved": True, "carriers": [c.to_dict() for c in ordered]}

    return run_with_retry(_op)


def _parse_priority(raw) -> int | None:
    text = str(raw).strip() if raw is not None else ""
    try:
        value = float(text)
    except ValueError:
        return None
    if not value.is_integer() or value < 1:
        return None
    return int(value)


def _parse_weight(raw):
    if raw is None or str(raw).strip() == "":
        return None
    return float(str(raw).strip())


def validate_import_rows(rows: list[dict]) -> list[dict]:
    """
    Check uploaded carrier rows against the stores and existing carriers.

    Returns normalized rows. Raises CarrierValidationError listing every
    problem found.
    """
    if not rows:
        raise CarrierValidationError("CSV file is empty")

    headers = {str(h).strip().lower() for h in rows[0].keys() if h is not None}
    missing_columns = [c for c in REQUIRED_COLUMNS if c not in headers]
    if missing_columns:
        raise CarrierValidationError("Missing required columns: " + ", ".join(missing_columns))

    known_stores = {code for (code,) in db.session.query(Store.account_code).all()}
    errors = []
    normalized = []
    seen = set()

    for line_no, raw in enumerate(rows, start=2):
        row = {str(k).strip().lower(): (str(v).strip() if v is not None else "") for k, v in raw.items() if k is not None}
        carrier_id = row.get("carrier_id", "")
        account_code = row.get("account_code", "")
        status = row.get("status", "").lower()

        if not carrier_id:
            errors.append(f"Row {line_no}: carrier_id is required")
            continue
        if not account_code:
            errors.append(f"Row {line_no}: account_code is required")
            continue
        if account_code not in known_stores:
            errors.append(f"Row {line_no}: unknown account_code '{account_code}'")
            continue
        if (carrier_id, account_code) in seen:
            errors.append(f"Row {line_no}: duplicate carrier_id '{carrier_id}' for store {account_code}")
            continue
        seen.add((carrier_id, account_code))

        priority = _parse_priority(row.get("priority"))
        if priority is None:
            errors.append(f"Row {line_no}: priority must be a positive integer")
            continue
        if status not in CARRIER_STATUSES:
            errors.append(f"Row {line_no}: status must be one of {', '.join(CARRIER_STATUSES)}")
            continue
        try:
            weight = _parse_weight(row.get("weight_in_kg"))
        except ValueError:
            errors.append(f"Row {line_no}: weight_in_kg must be numeric")
            continue

        normalized.append({
            "carrier_id": carrier_id,
            "carrier_name": row.get("carrier_name") or carrier_id,
            "status": status,
            "priority": priority,
            "weight_in_kg": weight,
            "account_code": account_code,
        })

    by_store: dict[str, list[dict]] = {}
    for row in normalized:
        by_store.setdefault(row["account_code"], []).append(row)

    for account_code, store_rows in sorted(by_store.items()):
        priorities = [r["priority"] for r in store_rows]
        duplicates = sorted({p for p in priorities if priorities.count(p) > 1})
        if duplicates:
            errors.append(
                f"Priority values must be unique within store {account_code}. "
                f"Duplicates: {', '.join(str(p) for p in duplicates)}"
            )

        uploaded_ids = {r["carrier_id"] for r in store_rows}
        existing_ids = {
            cid for (cid,) in db.session.query(Carrier.carrier_id)
            .filter(Carrier.account_code == account_code)
            .all()
        }
        missing_ids = sorted(existing_ids - uploaded_ids)
        if missing_ids:
            errors.append(
                f"Uploaded CSV is missing the following carrier IDs for store {account_code}: "
                + ", ".join(missing_ids)
            )

    if errors:
        raise CarrierValidationError("Carrier CSV validation failed", errors)
    return normalized


def import_carriers(rows: list[dict]) -> dict:
    """Replace carrier priorities for every store referenced by the upload."""
    normalized = validate_import_rows(rows)

    updated = 0
    inserted = 0
    for row in normalized:
        carrier = lock_for_update(
            db.session.query(Carrier).filter(
                Carrier.carrier_id == row["carrier_id"],
                Carrier.account_code == row["account_code"],
            )
        ).first()
        if carrier is None:
            carrier = Carrier(carrier_id=row["carrier_id"], account_code=row["account_code"])
            db.session.add(carrier)
            inserted += 1
        else:
            updated += 1
        carrier.carrier_name = row["carrier_name"]
        carrier.status = row["status"]
        carrier.priority = row["priority"]
        carrier.weight_in_kg = row["weight_in_kg"]

    db.session.commit()

    stores = sorted({r["account_code"] for r in normalized})
    total = db.session.query(Carrier).filter(Carrier.account_code.in_(stores)).count()
    logger.info("Carrier import: %s updated, %s inserted across %s", updated, inserted, ", ".join(stores))
    return {
        "updatedCount": updated,
        "insertedCount": inserted,
        "totalCarriers": total,
        "stores": stores,
    }


def export_csv(account_code: str | None = None) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for carrier in list_carriers(account_code):
        row = carrier.to_dict()
        if row["weight_in_kg"] is None:
            row["weight_in_kg"] = ""
        writer.writerow({k: row[k] for k in CSV_COLUMNS})
    return buffer.getvalue()


def format_info() -> dict:
    return {
        "columns": CSV_COLUMNS,
        "required": REQUIRED_COLUMNS,
        "statuses": list(CARRIER_STATUSES),
        "rules": [
            "priority must be a positive integer, unique within each account_code",
            "account_code must reference an existing store",
            "every carrier already registered for a referenced store must be present",
            "carrier_id may repeat across stores but not within one",
        ],
        "example": "carrier_id,carrier_name,status,priority,weight_in_kg,account_code\n"
                   "80165,Delhivery Surface,active,1,0.5,STORE1",
    }
