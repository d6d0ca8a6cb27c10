"""UserModule ORM: association between a user and a module they are enrolled in.

Invariants:
    - Composite primary key (user_id, module_id): inserting twice is a no-op
"""

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from politeshop.db.base import Base


class UserModule(Base):
    __tablename__ = "user_modules"

    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
    )
    module_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("modules.id", ondelete="CASCADE"), primary_key=True,
    )
