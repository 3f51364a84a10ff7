"""
Typed records for upstream payloads and assembled board rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional

import pandas as pd

ELAPSED_COLUMN = 9
DUE_COLUMN = 10


class SourceCategory(Enum):
    BEING_MEASURED_LIVE = ("beingmeasured", False)
    READY_TO_MEASURE_LIVE = ("readytomeasure", False)
    BEING_MEASURED_TRAINING = ("beingmeasured", True)
    READY_TO_MEASURE_TRAINING = ("readytomeasure", True)

    @property
    def is_ready_to_measure(self) -> bool:
        return self.value[0] == "readytomeasure"

    @property
    def is_training(self) -> bool:
        return self.value[1]

    @property
    def stage_label(self) -> str:
        return "Ready To Measure" if self.is_ready_to_measure else "Being Measured"

    @property
    def training_label(self) -> str:
        return "Training" if self.is_training else "Live"


class Tier(Enum):
    """Urgency bucket of a duration counter; colours are resolved in config."""

    NONE = "none"
    ALERT = "alert"
    SECOND = "second"
    THIRD = "third"


@dataclass(frozen=True)
class ReferenceMaps:
    teams: Mapping[Any, str]
    locations: Mapping[Any, str]

    def team_name(self, team_id: Any) -> str:
        return self.teams.get(team_id) or ""

    def location_name(self, location_id: Any) -> str:
        return self.locations.get(location_id) or ""


@dataclass(frozen=True)
class RawItem:
    report_id: Any
    task_state_id: Any
    product_name: str
    due_date: Optional[str]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RawItem":
        return cls(
            report_id=payload["reportID"],
            task_state_id=payload.get("taskStateID"),
            product_name=payload.get("primaryProductName") or "",
            due_date=payload.get("dueDate"),
        )


@dataclass(frozen=True)
class Report:
    is_hipster_job: bool
    pm_report_id: Any

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Report":
        return cls(
            is_hipster_job=bool(payload.get("isHipsterJob")),
            pm_report_id=payload.get("pmReportID"),
        )


@dataclass(frozen=True)
class TaskState:
    state_time: Optional[str]
    user_id: Any
    preferred_user_id: Any

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TaskState":
        return cls(
            state_time=payload.get("stateTime"),
            user_id=payload.get("userID"),
            preferred_user_id=payload.get("preferredUserID"),
        )


@dataclass(frozen=True)
class UserRecord:
    user_name: str = ""
    tech_username: str = ""
    team_id: Any = None
    location_id: Any = None

    @classmethod
    def first_of(cls, payload: Any) -> "UserRecord":
        """Pick element 0 of a user lookup; an empty or missing list gives a blank user."""
        if not isinstance(payload, list) or not payload or not isinstance(payload[0], Mapping):
            return cls()
        first = payload[0]
        return cls(
            user_name=first.get("userName") or "",
            tech_username=first.get("techUsername") or "",
            team_id=first.get("teamId"),
            location_id=first.get("locationId"),
        )


@dataclass(frozen=True)
class MeasurementItems:
    names: List[str]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MeasurementItems":
        items = payload.get("measurementItems") or []
        return cls(names=[(item.get("name") or "") for item in items])


@dataclass
class Counter:
    """A live duration cell: stored seconds plus its current text and tier."""

    seconds: int
    text: str
    tier: Tier = Tier.NONE


@dataclass
class Cell:
    text: str
    sort: Optional[str] = None
    sort_alt: Optional[str] = None


@dataclass
class Row:
    category: SourceCategory
    report_id: Any
    user_name: str
    tech_username: str
    team_name: str
    location_name: str
    product_label: str
    items_text: str
    elapsed: Optional[Counter] = None
    due: Optional[Counter] = None

    @property
    def is_training(self) -> bool:
        return self.category.is_training

    def cells(self) -> List[Cell]:
        """Rendered cells in display order."""
        cells = [
            Cell(self.category.stage_label),
            Cell(self.category.training_label),
            Cell(str(self.report_id)),
            Cell(self.user_name),
            Cell(self.tech_username),
            Cell(self.team_name),
            Cell(self.location_name),
            Cell(self.product_label),
            Cell(self.items_text),
        ]
        for counter in (self.elapsed, self.due):
            if counter is None:
                cells.append(Cell(""))
            else:
                cells.append(Cell(counter.text, sort=str(counter.seconds)))
        return cells

    def counter_at(self, column: int) -> Optional[Counter]:
        if column == ELAPSED_COLUMN:
            return self.elapsed
        if column == DUE_COLUMN:
            return self.due
        return None

    def text(self) -> str:
        return "\n".join(cell.text for cell in self.cells())


def parse_instant(value: Any, timezone: str) -> pd.Timestamp:
    """Parse an upstream timestamp into an aware instant in `timezone`.

    Values without an offset are read as wall-clock times of `timezone`, the
    way a browser reads them in local time: an ambiguous fall-back time takes
    the daylight offset and a skipped spring-forward time moves one hour
    ahead. Values with an offset are converted. Differences between results
    are real elapsed durations, across DST changes too.
    """
    stamp = pd.Timestamp(value)
    if pd.isna(stamp):
        raise ValueError(f"Unparsable timestamp: {value!r}")
    if stamp.tzinfo is None:
        return stamp.tz_localize(timezone, ambiguous=True, nonexistent=pd.Timedelta(hours=1))
    return stamp.tz_convert(timezone)
