"""Shared test helpers for the dependency_ingest tests."""

import json
import threading
from dataclasses import dataclass


REGISTRY = "https://registry.test"


@dataclass
class FakeResponse:
    content: bytes
    status_code: int = 200
    reason: str = ""


class FakeFetcher:
    """Serve canned registry responses keyed by (package, version)."""

    def __init__(self, responses=None) -> None:
        self.responses = responses or {}
        self.calls = []
        self._lock = threading.Lock()

    def version_url(self, package_name: str, version_number: str) -> str:
        return f"{REGISTRY}/{package_name}/{version_number}"

    def fetch(self, url: str) -> FakeResponse:
        with self._lock:
            self.calls.append(url)
        key = tuple(url[len(REGISTRY) + 1:].split("/", 1))
        response = self.responses.get(key)
        if response is None:
            return FakeResponse(b'{"error":"version not found"}', 404, "Not Found")
        if isinstance(response, FakeResponse):
            return response
        return FakeResponse(json.dumps(response).encode("utf-8"))
