"""URL Helpers: identifier and subdomain extraction from hypermedia hrefs.

Invariants:
    - Identifiers are the last non-empty path segment, query and fragment ignored
    - A URL whose path is empty or "/" has no identifier
    - Pure functions, no IO
"""

from urllib.parse import urlsplit


def last_path_component(url: str) -> str | None:
    """Return the last path segment of url, or None if the path has none.

    >>> last_path_component("https://brightspace.com/000/activity/123?q=0")
    '123'
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        return None
    trimmed = path.strip("/")
    if not trimmed:
        return None
    return trimmed.split("/")[-1]


def first_subdomain(url: str) -> str | None:
    """Return the leftmost label of the hostname in url (e.g. "nplms")."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return hostname.split(".")[0]
