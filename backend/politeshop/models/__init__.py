"""ORM Models: SQLAlchemy declarative models for persisted crawl results.

Invariants:
    - All models inherit from Base (db/base.py)
    - Primary keys are the upstream string ids; rows are upserted, never duplicated

Design Decisions:
    - One file per table for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs (ADR: standard SQLAlchemy pattern)
"""

from politeshop.models.school import School  # noqa: F401
from politeshop.models.user import User  # noqa: F401
from politeshop.models.semester import Semester  # noqa: F401
from politeshop.models.module import Module  # noqa: F401
from politeshop.models.user_module import UserModule  # noqa: F401
