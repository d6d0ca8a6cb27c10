"""API Schemas: response bodies for the POLITEShop HTTP surface.

Invariants:
    - Responses are built from domain records (core/domain_types.py)
    - Never carry tokens or cookie values
"""

from pydantic import BaseModel, ConfigDict


class _RecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ModuleResponse(_RecordResponse):
    id: str
    name: str
    code: str
    semester_id: str


class ActivityResponse(_RecordResponse):
    id: str
    lesson_id: str
    title: str


class LessonResponse(_RecordResponse):
    id: str
    unit_id: str
    title: str
    transparent: bool
    activities: list[ActivityResponse]


class UnitResponse(_RecordResponse):
    id: str
    module_id: str
    title: str
    lessons: list[LessonResponse]


class SyncResponse(_RecordResponse):
    user_id: str
    school_id: str
    semesters: int
    modules: int
