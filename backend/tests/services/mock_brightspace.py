"""Mock Brightspace: fake POLITEMall + Brightspace upstreams behind httpx.MockTransport.

Invariants:
    - Routes keyed by (method, absolute URL including query string)
    - Unknown routes answer 404, so a missing stub fails loudly
    - Every request is recorded for assertions (headers, cookies, bodies)

Design Decisions:
    - MockTransport over monkeypatching fetch functions: exercises the real
      httpx client, cookie jar and error mapping end to end
    - Builder helpers return plain dicts in Siren wire format
"""

import base64
from collections.abc import Callable

import httpx
import jwt

SIGNING_KEY = base64.b64encode(b"service-tests-signing-key-000001").decode()

TENANT = "746e9230-82d6-4d6b-bd68-5aa40aa19cce"
SITE = "https://nplms.polite.edu.sg"
ENROLLMENTS = f"https://{TENANT}.enrollments.api.brightspace.com"
ORGANIZATIONS = f"https://{TENANT}.organizations.api.brightspace.com"
SEQUENCES = f"https://{TENANT}.sequences.api.brightspace.com"
TOKEN_EXCHANGE = f"{SITE}/d2l/lp/auth/oauth2/token"
WHOAMI = f"{SITE}/d2l/api/lp/1.0/users/whoami"

REL_ORG = "https://api.brightspace.com/rels/organization"
REL_PARENT_SEMESTER = "https://api.brightspace.com/rels/parent-semester"
LESSON_CLASSES = ["release-condition-fix", "sequence", "sequence-description"]
ACTIVITY_CLASSES = ["release-condition-fix", "sequenced-activity"]


class FakeUpstream:
    """Programmable upstream for both APIs."""

    def __init__(self):
        self._routes: dict[tuple[str, str], Callable[[], httpx.Response] | Exception] = {}
        self.requests: list[httpx.Request] = []

    def add_json(self, url: str, body, *, method: str = "GET", status: int = 200):
        self._routes[(method, url)] = lambda: httpx.Response(status, json=body)

    def add_status(self, url: str, status: int, *, method: str = "GET"):
        self._routes[(method, url)] = lambda: httpx.Response(status)

    def add_raw(self, url: str, content: bytes, *, method: str = "GET"):
        self._routes[(method, url)] = lambda: httpx.Response(200, content=content)

    def add_error(self, url: str, exc: Exception, *, method: str = "GET"):
        self._routes[(method, url)] = exc

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        return route()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# -- Token builders ------------------------------------------------------------

def brightspace_jwt(sub="u1", tenantid=TENANT, **claims) -> str:
    """A Brightspace-like JWT signed with a key this system never sees."""
    payload = {**claims}
    if sub is not None:
        payload["sub"] = sub
    if tenantid is not None:
        payload["tenantid"] = tenantid
    return jwt.encode(
        payload, "upstream-only-secret-0123456789abcdef", algorithm="HS256",
    )


def stub_token_exchange(upstream: FakeUpstream, sub: str) -> str:
    """Make the token exchange answer with a fresh token for `sub`."""
    fresh = brightspace_jwt(sub)
    upstream.add_json(
        TOKEN_EXCHANGE,
        {"access_token": fresh, "expires_at": 1760000000},
        method="POST",
    )
    return fresh


# -- Siren builders ------------------------------------------------------------

def link(rel: list[str], href: str) -> dict:
    return {"rel": rel, "href": href}


def node(node_id, parent_id, title, *, classes=None, children=None) -> dict:
    """A sequence node (unit, lesson or activity) in Siren wire format."""
    return {
        "class": classes or [],
        "properties": {} if title is None else {"title": title},
        "links": [
            link(["self", "describes"], f"https://brightspace.com/000/activity/{node_id}?q=0"),
            link(["up"], f"https://brightspace.com/000/activity/{parent_id}?q=0"),
        ],
        "entities": children or [],
    }


def activity(node_id, lesson_id, title="activity", classes=None) -> dict:
    return node(node_id, lesson_id, title, classes=classes or ACTIVITY_CLASSES)


def lesson(node_id, unit_id, title="lesson", children=None) -> dict:
    return node(node_id, unit_id, title, classes=LESSON_CLASSES, children=children)


def unit(node_id, module_id, title="unit", children=None) -> dict:
    return node(node_id, module_id, title, children=children)


def organization(org_id, name, code, semester_id) -> dict:
    return {
        "class": ["active", "course-offering"],
        "properties": {"name": name, "code": code},
        "links": [
            link(["self"], f"{ORGANIZATIONS}/{org_id}"),
            link([REL_PARENT_SEMESTER], f"{ORGANIZATIONS}/{semester_id}?localeId=3"),
        ],
    }


def enrollment(org_id) -> dict:
    return {"links": [link([REL_ORG], f"{ORGANIZATIONS}/{org_id}")]}


def enrollments_root(user_id, enrollment_hrefs, school_id="6606") -> dict:
    return {
        "class": ["enrollments", "collection"],
        "entities": [
            {
                "class": ["enrollment"],
                "rel": ["https://api.brightspace.com/rels/user-enrollment"],
                "href": href,
            }
            for href in enrollment_hrefs
        ],
        "links": [
            link(["self"], f"{ENROLLMENTS}/users/{user_id}"),
            link([REL_ORG], f"{ORGANIZATIONS}/{school_id}"),
        ],
    }


def semester_search(semesters: list[tuple[str, str]]) -> dict:
    return {
        "class": ["course-search"],
        "actions": [
            {
                "name": sem_id,
                "title": title,
                "method": "GET",
                "href": f"{ORGANIZATIONS}/{sem_id}",
                "type": "application/x-www-form-urlencoded",
                "fields": [
                    {"name": "parentOrganizations", "type": "hidden", "value": sem_id},
                ],
            }
            for sem_id, title in semesters
        ],
    }


DEFAULT_MODULES = [
    ("332340", "Object-Oriented Programming", "CS1001", "300001"),
    ("332341", "Data Structures", "CS1002", "300001"),
]


def enrollment_href(user_id: str, org_id: str) -> str:
    return f"{ENROLLMENTS}/enrollments/users/{user_id}/organizations/{org_id}"


def stub_user_graph(upstream: FakeUpstream, user_id="u1", modules=None) -> None:
    """Stub enrollments root, school, whoami, semesters and per-module documents."""
    modules = DEFAULT_MODULES if modules is None else modules
    hrefs = [enrollment_href(user_id, m[0]) for m in modules]
    upstream.add_json(f"{ENROLLMENTS}/users/{user_id}", enrollments_root(user_id, hrefs))
    upstream.add_json(f"{ORGANIZATIONS}/6606", {
        "properties": {"name": "Ngee Ann Polytechnic"},
        "links": [link(["self"], f"{ORGANIZATIONS}/6606")],
    })
    upstream.add_json(WHOAMI, {
        "Identifier": user_id, "FirstName": "Alex",
        "LastName": "Tan", "UniqueName": "alex@example.com",
    })
    upstream.add_json(
        f"{SITE}/d2l/api/le/manageCourses/courses-searches/{user_id}/BySemester?desc=1",
        semester_search([("300001", " 2026 Semester 1"), ("300002", "2025 Semester 2 ")]),
    )
    for href, (org_id, name, code, sem_id) in zip(hrefs, modules):
        upstream.add_json(href, enrollment(org_id))
        upstream.add_json(f"{ORGANIZATIONS}/{org_id}", organization(org_id, name, code, sem_id))
