"""Sync status flags and diagnostics aggregation.

A sync produces two things: a :class:`SyncStatus` flag set that is OR-ed
together across fields, components, nodes and scenes, and a list of
:class:`LogItem` diagnostics grouped per component type in a
:class:`SyncReport`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from autoref.metadata import TypeMetadata


class SyncStatus(Flag):
    """Outcome flags of a sync.

    Flags only ever accumulate with ``|``; nothing in a batch clears them.
    """

    NONE = 0
    SKIP = auto()
    COMPLETE = auto()
    UNSUPPORTED = auto()
    ERROR = auto()
    WARNING = auto()
    MODIFIED = auto()


class Severity(Enum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"

    @property
    def status(self) -> SyncStatus:
        """The status flag a diagnostic of this severity contributes."""
        return SyncStatus.ERROR if self is Severity.ERROR else SyncStatus.WARNING


@dataclass(frozen=True)
class LogItem:
    """A single diagnostic about an annotated member of a component type."""

    severity: Severity
    declaring_type: type
    member_name: str
    attribute_name: str
    message: str
    context: str | None = None
    """Where the diagnostic was raised (e.g. the node path), if instance specific."""

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def type_name(self) -> str:
        return self.declaring_type.__qualname__

    def __str__(self) -> str:
        parts = [f"[{self.severity.value.upper()}]", f"{self.type_name}.{self.member_name}"]
        if self.attribute_name:
            parts.append(f"({self.attribute_name}):")
        else:
            parts[-1] += ":"
        parts.append(self.message)
        if self.context:
            parts.append(f"at {self.context}")
        return " ".join(parts)


def status_of(items: Iterable[LogItem]) -> SyncStatus:
    """Fold the severities of ``items`` into a status."""
    status = SyncStatus.NONE
    for item in items:
        status |= item.severity.status
    return status


@dataclass
class ReportInfo:
    """All diagnostics recorded for one component type."""

    type: type
    items: list[LogItem] = field(default_factory=list)

    @property
    def errors(self) -> list[LogItem]:
        """Get all error-level items."""
        return [i for i in self.items if i.is_error]

    @property
    def warnings(self) -> list[LogItem]:
        """Get all warning-level items."""
        return [i for i in self.items if not i.is_error]


@dataclass(frozen=True)
class StatisticsInfo:
    """Aggregate counts over one batch or one static analysis."""

    total_types: int = 0
    total_relevant_types: int = 0
    total_fields: int = 0
    total_callbacks: int = 0
    total_errors: int = 0
    total_warnings: int = 0

    @property
    def has_issues(self) -> bool:
        return self.total_errors + self.total_warnings > 0


class SyncReport:
    """Accumulates statuses and diagnostics over one batch.

    Build-time messages of a type are recorded once per batch no matter how
    many instances of the type get synced; resolution diagnostics are recorded
    per instance.
    """

    def __init__(self) -> None:
        self.status = SyncStatus.NONE
        self._reports: dict[type, ReportInfo] = {}
        self._types: set[type] = set()
        self._relevant_types: set[type] = set()
        self._fields = 0
        self._callbacks = 0

    def begin_type(self, component_type: type, metadata: TypeMetadata) -> bool:
        """Register that a component of ``component_type`` is being synced.

        Returns True the first time the type is seen in this batch.
        """
        if component_type in self._types:
            return False
        self._types.add(component_type)
        if metadata.is_syncable:
            self._relevant_types.add(component_type)
        for item in metadata.messages:
            self.add(item)
        return True

    def add(self, item: LogItem) -> None:
        report = self._reports.get(item.declaring_type)
        if report is None:
            report = self._reports[item.declaring_type] = ReportInfo(item.declaring_type)
        report.items.append(item)

    def count_field(self) -> None:
        self._fields += 1

    def count_callback(self) -> None:
        self._callbacks += 1

    def fold(self, status: SyncStatus) -> SyncStatus:
        """OR ``status`` into the batch status and return the new batch status."""
        self.status |= status
        return self.status

    def merge(self, other: SyncReport) -> None:
        """Fold another report into this one."""
        self.fold(other.status)
        for report in other.reports:
            known = self._reports.get(report.type)
            for item in report.items:
                # Build messages carry no context and are recorded once per type.
                if item.context is None and known is not None and item in known.items:
                    continue
                self.add(item)
        self._types |= other._types
        self._relevant_types |= other._relevant_types
        self._fields += other._fields
        self._callbacks += other._callbacks

    @property
    def reports(self) -> list[ReportInfo]:
        return list(self._reports.values())

    @property
    def items(self) -> list[LogItem]:
        return [item for report in self._reports.values() for item in report.items]

    @property
    def statistics(self) -> StatisticsInfo:
        items = self.items
        errors = sum(1 for i in items if i.is_error)
        return StatisticsInfo(
            total_types=len(self._types),
            total_relevant_types=len(self._relevant_types),
            total_fields=self._fields,
            total_callbacks=self._callbacks,
            total_errors=errors,
            total_warnings=len(items) - errors,
        )


def format_count(count: int, noun: str) -> str:
    """Format ``count`` with a naively pluralised ``noun``.

    Example:
        >>> format_count(1, "type")
        '1 type'
        >>> format_count(5, "type")
        '5 types'
    """
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def format_status_summary(status: SyncStatus, statistics: StatisticsInfo | None = None) -> str:
    """Render a one-line, human-readable summary of a sync outcome."""
    if status & SyncStatus.UNSUPPORTED:
        return "Auto-Reference sync is not supported while playing."

    if not status & SyncStatus.COMPLETE:
        return "Auto-Reference sync found nothing to sync."

    if statistics is not None and statistics.has_issues:
        issues = []
        if statistics.total_errors:
            issues.append(format_count(statistics.total_errors, "error"))
        if statistics.total_warnings:
            issues.append(format_count(statistics.total_warnings, "warning"))
        return f"Auto-Reference sync completed with {' and '.join(issues)}."

    if status & SyncStatus.ERROR:
        return "Auto-Reference sync completed with errors."
    if status & SyncStatus.WARNING:
        return "Auto-Reference sync completed with warnings."
    return "Auto-Reference sync completed successfully."
