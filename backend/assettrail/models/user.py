"""
Application user table.

Only the fields the core needs for permission checks and for rendering
names in the audit trail.
"""

from sqlalchemy import Column, String, DateTime

from assettrail.db.postgres import Base
from assettrail.records import User, utcnow


class UserRow(Base):
    __tablename__ = "app_user"

    user_id = Column(String(64), primary_key=True)
    fullname = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    role = Column(String(50), default="employee", nullable=False)  # admin | employee
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_record(self) -> User:
        return User(
            user_id=self.user_id,
            fullname=self.fullname,
            email=self.email,
            role=self.role,
        )

    @classmethod
    def from_record(cls, user: User) -> "UserRow":
        return cls(
            user_id=user.user_id,
            fullname=user.fullname,
            email=user.email,
            role=user.role,
        )
