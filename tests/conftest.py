"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory object store and job record store, a MockTransport
stand-in for the Runway API, and a wired JobOrchestrator with a fixed
clock and seed.
Dependencies: pytest, httpx, fastapi
System role: Test infrastructure and fixture management
"""

import json
from dataclasses import dataclass

import httpx
import pytest

from media_studio.application.services.job_orchestrator import JobOrchestrator
from media_studio.boundary.runway.client import RunwayClient
from media_studio.configs.provider import RunwaySettings
from media_studio.core.exceptions import JobRecordNotFoundError, ObjectStoreError
from media_studio.models.job import JobRecord

PUBLIC_BASE_URL = "https://media.example.com"
RUNWAY_API_BASE = "https://api.runway.test/v1"
FIXED_NOW = 1724300000.0
FIXED_MS = 1724300000000
FIXED_SEED = 42


@dataclass
class StoredObject:
    key: str
    body: bytes
    content_type: str


class FakeObjectStore:
    """In-memory object store recording every write."""

    def __init__(self, public_base_url: str = PUBLIC_BASE_URL):
        self.public_base_url = public_base_url
        self.writes: list[StoredObject] = []
        self.fail_with: str | None = None

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    async def upload_stream(self, key, fileobj, content_type):
        if self.fail_with:
            raise ObjectStoreError(self.fail_with, key=key)
        self.writes.append(StoredObject(key, fileobj.read(), content_type))

    def get(self, key: str) -> StoredObject | None:
        return next((w for w in self.writes if w.key == key), None)


class FakeJobRecordStore:
    """In-memory job record store with the same claim semantics as DynamoDB."""

    def __init__(self):
        self.records: dict[str, JobRecord] = {}
        self.claimed: set[str] = set()
        self.puts: list[str] = []
        self.deleted: list[str] = []
        self.released: list[str] = []

    async def put(self, task_id, record):
        self.records[task_id] = record
        self.puts.append(task_id)

    async def get(self, task_id):
        return self.records.get(task_id)

    async def claim(self, task_id):
        if task_id not in self.records:
            raise JobRecordNotFoundError(task_id)
        if task_id in self.claimed:
            return None
        self.claimed.add(task_id)
        return self.records[task_id]

    async def release(self, task_id):
        self.claimed.discard(task_id)
        self.released.append(task_id)

    async def delete(self, task_id):
        self.records.pop(task_id, None)
        self.claimed.discard(task_id)
        self.deleted.append(task_id)

    @property
    def mutation_count(self) -> int:
        return len(self.puts) + len(self.deleted) + len(self.released) + len(self.claimed)


class FakeRunway:
    """
    httpx.MockTransport handler standing in for the Runway API and the
    host its output files are downloaded from.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.submissions: list[tuple[str, dict]] = []
        self.status_checks: list[str] = []
        self.task_ids: list[str] = []
        self.statuses: dict[str, list] = {}
        self.outputs: dict[str, bytes] = {}
        self.submit_response: httpx.Response | None = None

    def queue_status(self, task_id: str, *payloads) -> None:
        """Status answers for a task, served in order; the last one repeats."""
        self.statuses.setdefault(task_id, []).extend(payloads)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url.startswith(RUNWAY_API_BASE):
            path = url[len(RUNWAY_API_BASE) + 1:]
            if request.method == "POST":
                self.submissions.append((path, json.loads(request.content)))
                if self.submit_response is not None:
                    return self.submit_response
                task_id = self.task_ids.pop(0) if self.task_ids else f"task-{len(self.submissions)}"
                return httpx.Response(200, json={"id": task_id, "status": "PENDING"})

            task_id = path.removeprefix("tasks/")
            self.status_checks.append(task_id)
            queue = self.statuses.get(task_id)
            if not queue:
                return httpx.Response(404, json={"error": "Task not found"})
            answer = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(answer, httpx.Response):
                return answer
            return httpx.Response(200, json={"id": task_id, **answer})

        if url in self.outputs:
            return httpx.Response(200, content=self.outputs[url])
        return httpx.Response(404, text="not found")

    @property
    def provider_calls(self) -> int:
        return len(self.submissions) + len(self.status_checks)


@pytest.fixture
def fake_runway() -> FakeRunway:
    return FakeRunway()


@pytest.fixture
def runway_settings() -> RunwaySettings:
    return RunwaySettings(api_key="test-key", api_base=RUNWAY_API_BASE)


@pytest.fixture
def runway_client(fake_runway, runway_settings) -> RunwayClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_runway))
    return RunwayClient(runway_settings, http_client=http_client)


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def job_records() -> FakeJobRecordStore:
    return FakeJobRecordStore()


@pytest.fixture
def orchestrator(runway_client, object_store, job_records) -> JobOrchestrator:
    """JobOrchestrator with a fixed clock and seed."""
    return JobOrchestrator(
        provider=runway_client,
        object_store=object_store,
        job_records=job_records,
        public_base_url=PUBLIC_BASE_URL,
        clock=lambda: FIXED_NOW,
        seed_source=lambda: FIXED_SEED,
    )
