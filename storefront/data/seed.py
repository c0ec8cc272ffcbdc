# storefront/data/seed.py
from storefront.data.database import SessionLocal
from storefront.data.models.user import UserModel
from storefront.utils.settings import KIOSK_EMAIL

STAFF_ACCOUNTS = [
    {"id": 1, "full_name": "Store Admin", "email": "admin@boki.com", "role": "admin"},
    {"id": 2, "full_name": "Kiosk", "email": KIOSK_EMAIL, "role": "kiosk"},
]


def seed(session_factory=SessionLocal) -> int:
    """Create the admin and kiosk accounts if the users table is empty; returns rows added."""
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            return 0
        for account in STAFF_ACCOUNTS:
            db.add(UserModel(**account))
        db.commit()
        return len(STAFF_ACCOUNTS)
    finally:
        db.close()
