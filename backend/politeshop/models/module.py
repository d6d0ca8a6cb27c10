"""Module ORM: one course offering (organization) and the semester it runs in.

Invariants:
    - semester references semesters.id but is NOT a foreign key: modules can be
      crawled for semesters that the semester search does not list
    - Users are linked through user_modules (many-to-many)

Design Decisions:
    - Column named `semester` to match the upstream record, mapped from
      Module.semester_id by the store
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from politeshop.db.base import Base


class Module(Base):
    __tablename__ = "modules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    semester: Mapped[str] = mapped_column(String(64), nullable=False)
