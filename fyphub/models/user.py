import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Enum, Boolean, Text, DateTime

from fyphub.db.base import Base


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    ADVISOR = "ADVISOR"
    EVALUATOR = "EVALUATOR"
    ADMINISTRATOR = "ADMINISTRATOR"


FACULTY_ROLES = (UserRole.ADVISOR, UserRole.EVALUATOR)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    role = Column(Enum(UserRole), default=UserRole.STUDENT, nullable=False)
    profile_info = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
