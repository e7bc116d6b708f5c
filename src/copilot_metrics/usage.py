"""Self-reported Copilot usage counters.

Counters are entered by the user and kept per login for the life of the
process. Writes replace the whole record, so the last write wins.
"""

import re
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_count(value: Any) -> int:
    """Coerce a form or JSON value to an integer counter.

    Numbers are truncated, strings are read up to the first non-digit
    ("12abc" -> 12), anything unparseable becomes 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


class CopilotUsageRecord(BaseModel):
    """User-entered counters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    completions_accepted: int = Field(default=0, alias="completionsAccepted")
    completions_rejected: int = Field(default=0, alias="completionsRejected")
    lines_generated: int = Field(default=0, alias="linesGenerated")
    last_updated: str | None = Field(default=None, alias="lastUpdated")

    @classmethod
    def from_input(cls, payload: dict[str, Any]) -> "CopilotUsageRecord":
        """Build a record from a request body, stamping ``last_updated`` now."""
        return cls(
            completions_accepted=parse_count(payload.get("completionsAccepted")),
            completions_rejected=parse_count(payload.get("completionsRejected")),
            lines_generated=parse_count(payload.get("linesGenerated")),
            last_updated=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        )

    @property
    def acceptance_rate(self) -> str | int:
        """Accepted share as a one-decimal percentage string, or 0 with no data."""
        total = self.completions_accepted + self.completions_rejected
        if total <= 0:
            return 0
        return f"{self.completions_accepted / total * 100:.1f}"

    def to_response(self) -> dict[str, Any]:
        return {**self.model_dump(by_alias=True), "acceptanceRate": self.acceptance_rate}


class UsageStore(Protocol):
    """Key-value storage for usage records, keyed by login."""

    def get(self, login: str) -> CopilotUsageRecord | None: ...

    def put(self, login: str, record: CopilotUsageRecord) -> None: ...


class InMemoryUsageStore:
    """Process-lifetime store; one record per login, last write wins."""

    def __init__(self) -> None:
        self._records: dict[str, CopilotUsageRecord] = {}

    def get(self, login: str) -> CopilotUsageRecord | None:
        return self._records.get(login)

    def put(self, login: str, record: CopilotUsageRecord) -> None:
        self._records[login] = record

    def __len__(self) -> int:
        return len(self._records)
