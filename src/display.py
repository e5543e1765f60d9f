"""
Console output for the sync tool.
Rich-based logging setup, a per-issue progress bar and the run summary table.
"""

import logging
import os
from collections import deque
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, cast

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

if TYPE_CHECKING:
    from src.models.migration_results import RunSummary

T = TypeVar("T")

SUCCESS_LEVEL = 25
NOTICE_LEVEL = 21


class ExtendedLogger(Protocol):
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def success(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def notice(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


LOGGING_THEME = Theme(
    {
        "logging.level.debug": "dim",
        "logging.level.info": "blue",
        "logging.level.notice": "cyan",
        "logging.level.warning": "bold yellow",
        "logging.level.error": "bold red",
        "logging.level.critical": "bold red on white",
        "logging.level.success": "bold green",
    }
)

console = Console(theme=LOGGING_THEME)

rich_handler = RichHandler(
    console=console,
    rich_tracebacks=True,
    tracebacks_show_locals=False,
    markup=True,
    show_time=True,
    show_level=True,
    log_time_format="[%X]",
)


def _success(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(SUCCESS_LEVEL):
        kwargs["extra"] = kwargs.get("extra", {})
        kwargs["extra"]["markup"] = True
        self._log(SUCCESS_LEVEL, f"[green]{message}[/]", args, stacklevel=2, **kwargs)


def _notice(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(NOTICE_LEVEL):
        self._log(NOTICE_LEVEL, message, args, stacklevel=2, **kwargs)


def _resolve_level(level: str) -> int:
    match level.upper():
        case "NOTICE":
            return NOTICE_LEVEL
        case "SUCCESS":
            return SUCCESS_LEVEL
        case other:
            return getattr(logging, other, logging.INFO)


def configure_logging(
    level: str = "INFO", log_file: str | os.PathLike[str] | None = None
) -> ExtendedLogger:
    """
    Configure logging with rich formatting.

    Args:
        level: Logging level (DEBUG, INFO, NOTICE, SUCCESS, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file

    Returns:
        The "migration" logger, extended with success() and notice()
    """
    logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")
    logging.addLevelName(NOTICE_LEVEL, "NOTICE")
    setattr(logging.Logger, "success", _success)
    setattr(logging.Logger, "notice", _notice)

    numeric_level = _resolve_level(level)
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
            )
        )
        file_handler.setLevel(numeric_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )

    # urllib3 logs every retry and connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.INFO))

    logger = logging.getLogger("migration")
    logger.debug("Rich logging configured at level %s", level.upper())
    if log_file:
        logger.debug("Log file: %s", log_file)

    return cast(ExtendedLogger, logger)


class ProgressTracker(Generic[T]):
    """
    Progress bar with a rolling log of the most recent items below it.

    Used by the issue migration to show which issue is being processed
    without drowning the per-issue log lines.
    """

    def __init__(
        self,
        description: str,
        total: int,
        log_title: str = "Recent issues",
        max_log_items: int = 5,
    ) -> None:
        self.description = description
        self.total = total
        self.log_title = log_title
        self.progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("({task.completed}/{task.total})"),
            console=console,
        )
        self.task_id = self.progress.add_task(description, total=total)
        self.recent_items: deque[str] = deque(maxlen=max_log_items)
        self.processed_count = 0
        self.live: Live | None = None

    def __enter__(self) -> "ProgressTracker[T]":
        self.live = Live(
            console=console,
            refresh_per_second=2,
            auto_refresh=True,
            vertical_overflow="ellipsis",
        )
        self.live.__enter__()
        self._update_display()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.live:
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None

    def add_log_item(self, item: str) -> None:
        self.recent_items.append(item)
        self._update_display()

    def increment(self, advance: int = 1, description: str | None = None) -> None:
        self.processed_count += advance
        if description:
            self.progress.update(
                self.task_id, completed=self.processed_count, description=description
            )
        else:
            self.progress.update(self.task_id, completed=self.processed_count)
        self._update_display()

    def _update_display(self) -> None:
        if not self.live:
            return

        if not self.recent_items:
            self.live.update(self.progress)
            return

        log_table = Table.grid(padding=(0, 1))
        log_table.add_column()
        log_table.add_row(Text(f"{self.log_title}:", style="bold yellow"))
        for item in self.recent_items:
            log_table.add_row(f"  - {item}")

        combined = Table.grid(padding=1)
        combined.add_column()
        combined.add_row(self.progress)
        combined.add_row(log_table)
        self.live.update(Panel.fit(combined, title=self.description, border_style="blue"))

    def track(self, iterable: Iterable[T]) -> Iterable[T]:
        """Yield items from iterable, advancing the bar after each one."""
        for item in iterable:
            yield item
            self.increment()


def print_run_summary(summary: "RunSummary") -> None:
    """Print the end-of-run counters as a table."""
    table = Table(title=f"Migration summary: {summary.project_key}", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Total issues processed", str(summary.total))
    table.add_row("Completed", f"[green]{summary.processed}[/]")
    table.add_row("Skipped", f"[yellow]{summary.skipped}[/]")
    table.add_row("Errors", f"[red]{summary.errors}[/]" if summary.errors else "0")
    console.print(table)

    if summary.failed_issues:
        console.print(
            "[bold red]Failed issues:[/] " + ", ".join(summary.failed_issues)
        )
