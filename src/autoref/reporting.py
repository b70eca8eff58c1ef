"""Static diagnostics over component types, without syncing anything."""

from __future__ import annotations

from typing import Iterable

from autoref.metadata import MetadataCache
from autoref.scene import Component
from autoref.status import ReportInfo, StatisticsInfo, format_count


def collect_reports(
    types: Iterable[type],
    cache: MetadataCache | None = None,
) -> tuple[list[ReportInfo], StatisticsInfo]:
    """Build metadata for ``types`` and gather their declaration diagnostics.

    Args:
        types: Classes to analyse; non-component classes are ignored
        cache: Metadata cache to use (a private one when omitted)

    Returns:
        One report per type that has diagnostics, sorted by type name, and
        statistics across every component type given
    """
    cache = cache if cache is not None else MetadataCache()

    reports: list[ReportInfo] = []
    total_types = relevant = fields = callbacks = errors = warnings = 0
    for cls in dict.fromkeys(types):
        if not (isinstance(cls, type) and issubclass(cls, Component)):
            continue
        total_types += 1

        metadata = cache.get_or_build(cls)
        if metadata.is_syncable or metadata.messages:
            relevant += 1
        fields += len(metadata.fields)
        callbacks += metadata.declared_callbacks_count

        if metadata.messages:
            report = ReportInfo(cls, list(metadata.messages))
            errors += len(report.errors)
            warnings += len(report.warnings)
            reports.append(report)

    reports.sort(key=lambda r: (r.type.__module__, r.type.__qualname__))
    stats = StatisticsInfo(
        total_types=total_types,
        total_relevant_types=relevant,
        total_fields=fields,
        total_callbacks=callbacks,
        total_errors=errors,
        total_warnings=warnings,
    )
    return reports, stats


def format_statistics(stats: StatisticsInfo) -> str:
    """Render statistics as the one-line summary of a diagnostics view."""
    line = (
        f"Auto-Reference Summary: {format_count(stats.total_fields, 'field')} and "
        f"{format_count(stats.total_callbacks, 'callback')} in "
        f"{format_count(stats.total_relevant_types, 'type')}"
    )
    if stats.total_types > 0:
        line += f" (out of {stats.total_types})"
    return line
