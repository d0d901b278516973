"""Snapshot comparison engine.

Compares the structure of one CFR title at two dates:

1. fetch both structure documents concurrently
2. flatten each into a map of section identifier -> node
3. classify differences as added, removed or modified
4. filter by change type and summarize the filtered list

Only section-level nodes are compared. A section counts as modified when
any of its heading, reserved flag, received date or size differs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any

from .dates import shift_days
from .dates import today_iso
from .ecfr_client import EcfrClient
from .ecfr_client import clamp_end_date
from .exceptions import ValidationError
from .metrics_config import record_section_changes
from .models import ChangeRecord
from .models import ChangeSummary
from .models import ComparisonResult
from .models import ModifiedSection
from .models import SectionChange
from .models import SectionMap
from .models import SectionMetadata
from .models import StructureNode

logger = logging.getLogger(__name__)

SECTION_TYPE = "section"
COMPARED_FIELDS = ("label_description", "reserved", "received_on", "size")


# --- Flattening ---


def flatten_sections(root: Any) -> SectionMap:
    """Collect every section node of a structure document, keyed by identifier.

    Walks depth-first with an explicit stack so document order is kept and
    nesting depth cannot exhaust the interpreter stack. Anything that is not
    a JSON object, and any section without a non-empty string identifier,
    is skipped. A later duplicate identifier replaces the earlier node.
    """
    sections: SectionMap = {}
    stack: list[Any] = [root]
    while stack:
        node = stack.pop()
        if not isinstance(node, Mapping):
            continue

        identifier = node.get("identifier")
        if node.get("type") == SECTION_TYPE and isinstance(identifier, str) and identifier:
            sections[identifier] = StructureNode.model_validate(dict(node))

        children = node.get("children")
        if isinstance(children, list):
            stack.extend(reversed(children))
    return sections


# --- Diffing ---


def _citation(title: int | str, identifier: str) -> str:
    return f"{title} CFR {identifier}"


def _part_for(part: str | None, node: StructureNode) -> Any:
    return part if part is not None else node.hierarchy_part


def _metadata_differs(before: StructureNode, after: StructureNode) -> bool:
    return any(getattr(before, field) != getattr(after, field) for field in COMPARED_FIELDS)


def diff_section_maps(
    title: int | str,
    start_map: SectionMap,
    end_map: SectionMap,
    change_date: str,
    part: str | None = None,
) -> list[ChangeRecord]:
    """Classify the differences between two section maps.

    Records come out as all additions (end map order), then all removals
    (start map order), then all modifications (end map order).
    """
    changes: list[ChangeRecord] = []

    for identifier, node in end_map.items():
        if identifier not in start_map:
            changes.append(
                SectionChange(
                    type="added",
                    section=identifier,
                    citation=_citation(title, identifier),
                    part=_part_for(part, node),
                    change_date=change_date,
                    heading=node.heading,
                )
            )

    for identifier, node in start_map.items():
        if identifier not in end_map:
            changes.append(
                SectionChange(
                    type="removed",
                    section=identifier,
                    citation=_citation(title, identifier),
                    part=_part_for(part, node),
                    change_date=change_date,
                    heading=node.heading,
                )
            )

    for identifier, node in end_map.items():
        previous = start_map.get(identifier)
        if previous is not None and _metadata_differs(previous, node):
            changes.append(
                ModifiedSection(
                    section=identifier,
                    citation=_citation(title, identifier),
                    part=_part_for(part, node),
                    change_date=change_date,
                    start_metadata=SectionMetadata.from_node(previous),
                    end_metadata=SectionMetadata.from_node(node),
                )
            )

    return changes


def filter_changes(changes: list[ChangeRecord], change_types: Iterable[str] | None = None) -> list[ChangeRecord]:
    """Keep records whose type was requested; ``None`` keeps everything."""
    if change_types is None:
        return list(changes)
    wanted = set(change_types)
    return [change for change in changes if change.type in wanted]


def summarize_changes(changes: list[ChangeRecord]) -> ChangeSummary:
    """Count a change list by type."""
    return ChangeSummary(
        total_changes=len(changes),
        sections_added=sum(1 for change in changes if change.type == "added"),
        sections_removed=sum(1 for change in changes if change.type == "removed"),
        sections_modified=sum(1 for change in changes if change.type == "modified"),
    )


async def _fetch_both(client: EcfrClient, title: int, start_date: str, end_date: str, part: str | None):
    """Fetch two snapshots concurrently; the first failure cancels the other."""
    tasks = [
        asyncio.ensure_future(client.fetch_structure(start_date, title, part)),
        asyncio.ensure_future(client.fetch_structure(end_date, title, part)),
    ]
    try:
        start_structure, end_structure = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return start_structure, end_structure


async def compare_title_snapshots(
    client: EcfrClient,
    title: int,
    start_date: str,
    end_date: str,
    part: str | None = None,
    change_types: Iterable[str] | None = None,
) -> ComparisonResult:
    """Diff the structure of ``title`` between ``start_date`` and ``end_date``."""
    start_structure, end_structure = await _fetch_both(client, title, start_date, end_date, part)
    start_map = flatten_sections(start_structure)
    end_map = flatten_sections(end_structure)
    logger.debug(
        "Comparing title %s: %d sections at %s, %d sections at %s",
        title,
        len(start_map),
        start_date,
        len(end_map),
        end_date,
    )

    changes = filter_changes(
        diff_section_maps(title, start_map, end_map, change_date=end_date, part=part),
        change_types,
    )
    summary = summarize_changes(changes)
    record_section_changes(title, summary)
    return ComparisonResult(summary=summary, changes=changes)


# --- Composite operations behind the comparison tools ---


async def resolve_end_date(client: EcfrClient, title: int, requested: str) -> str:
    """Clamp a requested end date to the title's latest issue date."""
    meta = await client.fetch_title_meta(title)
    latest_issue = meta.latest_issue_date if meta else None
    effective = clamp_end_date(requested, latest_issue)
    if effective != requested:
        logger.info("Clamped end date for title %s from %s to %s", title, requested, effective)
    return effective


async def compare_title_dates(
    client: EcfrClient,
    title: int,
    start_date: str,
    end_date: str,
    part: str | None = None,
    change_types: list[str] | None = None,
) -> dict[str, Any]:
    """Compare two dates of a title and echo the effective parameters."""
    effective_end = await resolve_end_date(client, title, end_date)
    result = await compare_title_snapshots(client, title, start_date, effective_end, part, change_types)
    return {
        "endpoint": "composite: structure comparison",
        "params": {
            "title": title,
            "start_date": start_date,
            "end_date": effective_end,
            "part": part,
            "change_types": change_types,
        },
        **result.model_dump(),
    }


async def get_recent_changes(
    client: EcfrClient,
    title: int,
    days: int = 180,
    part: str | None = None,
    end_date: str | None = None,
    change_types: list[str] | None = None,
) -> dict[str, Any]:
    """Report changes in the trailing ``days`` window ending at ``end_date`` (default today)."""
    if days < 1:
        raise ValidationError("days must be a positive integer", field="days", value=days)

    requested_end = end_date or today_iso()
    effective_end = await resolve_end_date(client, title, requested_end)
    start = shift_days(effective_end, days)
    if start is None:
        raise ValidationError(
            f"end_date must be a YYYY-MM-DD date, got {effective_end!r}", field="end_date", value=effective_end
        )
    start_date = start.isoformat()

    result = await compare_title_snapshots(client, title, start_date, effective_end, part, change_types)
    return {
        "endpoint": "composite: recent change window",
        "params": {
            "title": title,
            "start_date": start_date,
            "end_date": effective_end,
            "part": part,
            "days": days,
            "change_types": change_types,
        },
        **result.model_dump(),
    }
