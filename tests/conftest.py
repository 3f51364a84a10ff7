from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import pytest

from opsboard.config import BoardSettings
from opsboard.data.client import ApiClient
from opsboard.data.models import Counter, Row, SourceCategory, Tier

TIME_HOST = "time.test"
API_HOST = "api.test"
FEED_HOST = "feed.test"


def make_settings(**overrides) -> BoardSettings:
    values = dict(
        time_url=f"https://{TIME_HOST}/api/timezone/PST8PDT",
        api_base=f"https://{API_HOST}/api",
        feed_base=f"https://{FEED_HOST}/TaskTrafficView/",
        time_retries=2,
        time_retry_delay=0,
        tick_interval=3600,
    )
    values.update(overrides)
    return BoardSettings(**values)


@pytest.fixture
def settings() -> BoardSettings:
    return make_settings()


def make_row(
    report_id: Any = 1,
    category: SourceCategory = SourceCategory.BEING_MEASURED_LIVE,
    user_name: str = "",
    product_label: str = "Roof",
    elapsed: Optional[int] = 0,
    due: Optional[int] = 0,
) -> Row:
    return Row(
        category=category,
        report_id=report_id,
        user_name=user_name,
        tech_username="",
        team_name="",
        location_name="",
        product_label=product_label,
        items_text="",
        elapsed=Counter(seconds=elapsed, text="", tier=Tier.NONE) if elapsed is not None else None,
        due=Counter(seconds=due, text="", tier=Tier.NONE) if due is not None else None,
    )


class FakeUpstream:
    """In-memory stand-in for the time service, directories, feeds and lookups."""

    def __init__(self, now: str = "2024-05-01T12:00:00.123456-07:00"):
        self.time_payload: Any = {"datetime": now}
        self.time_failures = 0
        self.teams: List[Dict[str, Any]] = [{"teamId": 7, "name": "North"}]
        self.locations: List[Dict[str, Any]] = [{"id": 3, "description": "HQ Floor 2"}]
        self.feeds: Dict[SourceCategory, Any] = {category: [] for category in SourceCategory}
        self.failing_feeds: set = set()
        self.reports: Dict[str, Any] = {}
        self.task_states: Dict[str, Any] = {}
        self.users: Dict[str, Any] = {}
        self.items: Dict[str, Any] = {}
        self.failing_paths: set = set()
        self.requests: List[httpx.Request] = []

    def add_item(
        self,
        category: SourceCategory,
        report_id: int,
        due: str = "2024-05-01T13:06:40",
        state_time: str = "2024-05-01T11:00:00",
        user: Optional[Dict[str, Any]] = None,
        hipster: bool = False,
        pm_report_id: Any = None,
        item_names: Optional[List[str]] = None,
        product: str = "Roof",
    ) -> None:
        task_state_id = report_id * 10
        user_id = report_id * 100
        self.feeds[category].append(
            {
                "reportID": report_id,
                "taskStateID": task_state_id,
                "primaryProductName": product,
                "dueDate": due,
            }
        )
        self.reports[str(report_id)] = {"isHipsterJob": hipster, "pmReportID": pm_report_id}
        self.task_states[str(task_state_id)] = {
            "stateTime": state_time,
            "userID": user_id,
            "preferredUserID": user_id + 1,
        }
        record = user if user is not None else {
            "userName": f"user{report_id}",
            "techUsername": f"tech{report_id}",
            "teamId": 7,
            "locationId": 3,
        }
        self.users[str(user_id)] = [record]
        self.users[str(user_id + 1)] = [dict(record, userName=f"preferred{report_id}")]
        self.items[str(report_id)] = {
            "measurementItems": [{"name": name} for name in (item_names or ["Main Roof"])]
        }

    def _feed_category(self, request: httpx.Request) -> SourceCategory:
        values = request.url.params.get_list("value")
        types = request.url.params.get_list("type")
        ready = "readytomeasure" in values
        training = "29" in types
        for category in SourceCategory:
            if category.is_ready_to_measure == ready and category.is_training == training:
                return category
        raise AssertionError(f"unknown feed {request.url}")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path
        if host == TIME_HOST:
            if self.time_failures > 0:
                self.time_failures -= 1
                return httpx.Response(503)
            return httpx.Response(200, json=self.time_payload)
        if path in self.failing_paths:
            return httpx.Response(500)
        if host == FEED_HOST:
            category = self._feed_category(request)
            if category in self.failing_feeds:
                return httpx.Response(502)
            return httpx.Response(200, json=self.feeds[category])

        parts = path.strip("/").split("/")[1:]
        if parts == ["Team"]:
            return httpx.Response(200, json=self.teams)
        if parts == ["Location"]:
            return httpx.Response(200, json=self.locations)
        if parts == ["User", "id"]:
            ids = request.url.params.get("ids")
            return httpx.Response(200, json=self.users.get(ids, []))
        if len(parts) == 2 and parts[0] == "Report" and parts[1] in self.reports:
            return httpx.Response(200, json=self.reports[parts[1]])
        if len(parts) == 3 and parts[0] == "Report" and parts[2] == "measurement-items":
            if parts[1] in self.items:
                return httpx.Response(200, json=self.items[parts[1]])
        if len(parts) == 3 and parts[:2] == ["TaskState", "id"] and parts[2] in self.task_states:
            return httpx.Response(200, json=self.task_states[parts[2]])
        return httpx.Response(404)

    def client(self, settings: BoardSettings) -> ApiClient:
        return ApiClient(settings, transport=httpx.MockTransport(self.handler))

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()
