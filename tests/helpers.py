"""In-memory HTTP session and sheet record builders for tests."""

import threading
from typing import Dict, List, Optional

from requests.structures import CaseInsensitiveDict


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", headers: Optional[dict] = None,
                 reason: str = "OK"):
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.reason = reason


def redirect(location: Optional[str], status_code: int = 307) -> FakeResponse:
    headers = {"Location": location} if location is not None else {}
    return FakeResponse(status_code=status_code, headers=headers, reason="Redirect")


class FakeSession:
    """
    Serves canned responses by URL.

    A route may be a single response, a list consumed in order, or an
    exception instance to raise.
    """

    def __init__(self, routes: Optional[Dict[str, object]] = None):
        self.routes = dict(routes or {})
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def get(self, url, allow_redirects=True, timeout=None):
        with self._lock:
            self.calls.append(url)
            route = self.routes.get(url)
            if isinstance(route, list):
                route = route.pop(0) if route else None

        if route is None:
            return FakeResponse(status_code=404, reason="Not Found")
        if isinstance(route, Exception):
            raise route
        return route


def rows_to_records(rows: List[List[str]], headers: Optional[List[str]] = None) -> List[Dict[str, str]]:
    """Build positional records the way the parser would, padding short rows."""
    width = max(len(row) for row in rows)
    if headers is None:
        headers = [""] + [f".{i}" for i in range(1, width)]
    return [dict(zip(headers, row + [""] * (width - len(row)))) for row in rows]


