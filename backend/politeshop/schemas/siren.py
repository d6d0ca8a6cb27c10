"""Siren Schemas: immutable in-memory form of one fetched hypermedia document.

Invariants:
    - Models are frozen after decode; the parser never mutates a document
    - Link rel lists and entity class lists are matched by EXACT sequence equality
      (order-sensitive), never set equality
    - Missing or null arrays decode as empty, missing properties as an empty map
    - Unknown keys are ignored

Design Decisions:
    - Pydantic over hand-written decode: malformed bodies surface as one
      ValidationError that the fetcher maps to MalformedResponseError
    - Typed accessors (string_property) over raw dict lookups: a
      missing or mistyped property is an explicit None, not a KeyError deep in a parse
    - require_* helpers raise MissingElementError naming the element and document
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from politeshop.core.errors import MissingElementError


class _SirenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def null_to_default(cls, v: Any, info) -> Any:
        """Upstream sometimes sends null where an array or object is expected."""
        if v is not None:
            return v
        field_info = cls.model_fields[info.field_name]
        if field_info.default_factory is not None:
            return field_info.default_factory()
        return field_info.default


class Link(_SirenModel):
    rel: tuple[str, ...] = ()
    href: str = ""
    classes: tuple[str, ...] = Field(default=(), alias="class")
    type: str = ""


class ActionField(_SirenModel):
    name: str = ""
    title: str = ""
    type: str = ""
    value: Any = None


class Action(_SirenModel):
    name: str = ""
    method: str = "GET"
    href: str = ""
    title: str = ""
    type: str = ""
    classes: tuple[str, ...] = Field(default=(), alias="class")
    action_fields: tuple[ActionField, ...] = Field(default=(), alias="fields")


class Entity(_SirenModel):
    """One hypermedia document (or embedded sub-document, which also carries href)."""
    classes: tuple[str, ...] = Field(default=(), alias="class")
    rel: tuple[str, ...] = ()
    href: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)
    links: tuple[Link, ...] = ()
    actions: tuple[Action, ...] = ()
    entities: tuple["Entity", ...] = ()

    def class_is(self, *classes: str) -> bool:
        """True iff the entity's class list equals classes exactly, in order."""
        return self.classes == classes

    def find_link(self, *rels: str) -> Link | None:
        """Return the first link whose rel list equals rels exactly."""
        for link in self.links:
            if link.rel == rels:
                return link
        return None

    def require_link(self, *rels: str, where: str = "entity") -> Link:
        link = self.find_link(*rels)
        if link is None:
            raise MissingElementError("link", "+".join(rels), where)
        return link

    def string_property(self, name: str) -> str | None:
        value = self.properties.get(name)
        return value if isinstance(value, str) else None

    def require_string_property(self, name: str, where: str = "entity") -> str:
        value = self.string_property(name)
        if value is None:
            raise MissingElementError("property", name, where)
        return value


Entity.model_rebuild()
