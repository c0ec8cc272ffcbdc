from sqlalchemy.orm import Session
from storefront.data.models.user import UserModel
from storefront.domain.schemas import Identity, UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.settings import KIOSK_EMAIL


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        if payload.email and self.repo.get_user_by_email(payload.email):
            raise ValueError(f"Email already registered: {payload.email}")

        # the kiosk account is recognised by its email
        role = "kiosk" if payload.email == KIOSK_EMAIL else payload.role
        user = UserModel(id=payload.id, full_name=payload.full_name, email=payload.email, role=role)
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise LookupError("User not found")
        return UserRead.model_validate(user)

    def resolve_identity(self, user_id: int | None) -> Identity | None:
        """Map the caller's user id to an Identity; unknown ids are treated as signed out."""
        if user_id is None:
            return None
        user = self.repo.get_user(user_id)
        if not user:
            return None
        return Identity(user_id=user.id, role=user.role, email=user.email, full_name=user.full_name)

