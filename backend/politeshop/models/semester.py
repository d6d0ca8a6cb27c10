"""Semester ORM: semester id is the action name on the semester-search document."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from politeshop.db.base import Base


class Semester(Base):
    __tablename__ = "semesters"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
