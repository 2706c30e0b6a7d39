# Overview: Service-layer operations for stores; encapsulates business logic and database work.

from ..extensions import db
from ..models import Store


class StoreNotFoundError(Exception):
    """Raised when a store is not found."""
    pass


class StoreValidationError(Exception):
    """Raised when store data fails validation."""
    pass


def list_stores(include_inactive: bool = True) -> list[Store]:
    query = db.session.query(Store)
    if not include_inactive:
        query = query.filter(Store.status == "active")
    return query.order_by(Store.store_name).all()


def get_store(account_code: str) -> Store:
    store = db.session.query(Store).filter(Store.account_code == account_code).first()
    if not store:
        raise StoreNotFoundError("Store not found")
    return store


def create_store(*, account_code: str, store_name: str, status: str = "active") -> Store:
    account_code = (account_code or "").strip()
    store_name = (store_name or "").strip()
    if not account_code or not store_name:
        raise StoreValidationError("account_code and store_name are required")
    if status not in ("active", "inactive"):
        raise StoreValidationError("Status must be either active or inactive")
    if db.session.query(Store).filter(Store.account_code == account_code).first():
        raise StoreValidationError(f"Store '{account_code}' already exists")

    store = Store(account_code=account_code, store_name=store_name, status=status)
    db.session.add(store)
    db.session.commit()
    return store


def toggle_status(account_code: str) -> Store:
    store = get_store(account_code)
    store.status = "inactive" if store.status == "active" else "active"
    db.session.commit()
    return store
