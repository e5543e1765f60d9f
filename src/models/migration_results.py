"""
Run result model for a single migrate() call.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field


class RunSummary(BaseModel):
    """Counters and output index of one migration run."""

    project_key: str
    op_project_id: int | str
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    issue_map: dict[str, int] = Field(default_factory=dict)
    failed_issues: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    finished_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        """Issues that reached a terminal state other than Errored."""
        return self.processed + self.skipped

    def record_done(self) -> None:
        self.processed += 1

    def record_skipped(self, key: str, work_package_id: int) -> None:
        self.issue_map[key] = work_package_id
        self.skipped += 1

    def record_error(self, key: str) -> None:
        self.errors += 1
        self.failed_issues.append(key)

    def finish(self) -> None:
        self.finished_at = datetime.now(tz=UTC)
