import hashlib
from typing import Protocol

from sqlalchemy.orm import Session

from librarypanels.models import User
from librarypanels.schemas import UserMeta


class UserMetaResolver(Protocol):
    def resolve(self, user_id: int) -> UserMeta:
        ...


def avatar_url(email: str) -> str:
    digest = hashlib.md5(str(email or "").strip().lower().encode("utf-8")).hexdigest()
    return f"/avatar/{digest}"


class SqlUserMetaResolver:
    """Resolve display name and avatar from the users table; unknown ids resolve to blanks."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, user_id: int) -> UserMeta:
        user = self.db.get(User, user_id)
        if user is None:
            return UserMeta()
        return UserMeta(name=user.login, avatar_url=avatar_url(user.email))
