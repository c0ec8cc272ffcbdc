from sqlalchemy import select
from sqlalchemy.orm import Session
from storefront.data.models.user import UserModel
from storefront.repos.context import store_call


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    @store_call("select users")
    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    @store_call("select users")
    def get_user_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(select(UserModel).where(UserModel.email == email)).scalar_one_or_none()

    @store_call("insert users")
    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def rollback(self):
        self.db.rollback()
