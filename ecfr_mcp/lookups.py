"""Pass-through operations behind the search, reference and structure tools.

Each function takes an open EcfrClient, calls one (or, for section content,
a few) eCFR endpoints and returns the payload the tool sends back: a dict
echoing the endpoint and effective parameters, or raw XML text.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .dates import ranges_overlap
from .ecfr_client import AGENCIES_PATH
from .ecfr_client import CORRECTIONS_PATH
from .ecfr_client import SEARCH_RESULTS_PATH
from .ecfr_client import SEARCH_SUMMARY_PATH
from .ecfr_client import TITLES_PATH
from .ecfr_client import EcfrClient
from .exceptions import EcfrMCPError
from .exceptions import SectionResolutionError

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DATE = "current"
DEFAULT_SEARCH_ORDER = "relevance"
DEFAULT_SEARCH_RESULTS = 50


def _same(left: Any, right: Any) -> bool:
    return str(left) == str(right)


def _hierarchy(entry: Any) -> dict[str, Any]:
    if isinstance(entry, dict) and isinstance(entry.get("hierarchy"), dict):
        return entry["hierarchy"]
    return {}


# --- Search ---


async def search_results(
    client: EcfrClient,
    query: str,
    date: str | None = None,
    order: str | None = None,
    results: int | None = None,
) -> dict[str, Any]:
    params = {
        "query": query,
        "date": date or DEFAULT_SEARCH_DATE,
        "order": order or DEFAULT_SEARCH_ORDER,
        "results": results or DEFAULT_SEARCH_RESULTS,
    }
    data = await client.search_results(**params)
    return {"endpoint": SEARCH_RESULTS_PATH, "params": params, "data": data}


async def search_summary(
    client: EcfrClient,
    query: str,
    date: str | None = None,
    order: str | None = None,
) -> dict[str, Any]:
    params = {
        "query": query,
        "date": date or DEFAULT_SEARCH_DATE,
        "order": order or DEFAULT_SEARCH_ORDER,
    }
    data = await client.search_summary(**params)
    return {"endpoint": SEARCH_SUMMARY_PATH, "params": params, "data": data}


async def search_with_date_range(
    client: EcfrClient,
    query: str,
    title: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    results: int | None = None,
    order: str | None = None,
) -> dict[str, Any]:
    """Search, then keep hits in ``title`` whose effective window overlaps the requested one."""
    results = results or DEFAULT_SEARCH_RESULTS
    order = order or DEFAULT_SEARCH_ORDER
    data = await client.search_results(query=query, order=order, results=results)

    hits = data.get("results") if isinstance(data, dict) else None
    filtered: list[Any] = []
    if isinstance(hits, list):
        for entry in hits:
            if title is not None and not _same(_hierarchy(entry).get("title"), title):
                continue
            if start_date or end_date:
                starts = entry.get("starts_on") if isinstance(entry, dict) else None
                ends = entry.get("ends_on") if isinstance(entry, dict) else None
                if not ranges_overlap(start_date, end_date, starts, ends):
                    continue
            filtered.append(entry)

    return {
        "endpoint": SEARCH_RESULTS_PATH,
        "params": {
            "query": query,
            "title": title,
            "start_date": start_date,
            "end_date": end_date,
            "order": order,
            "results": results,
        },
        "data": {
            "meta": (data.get("meta") if isinstance(data, dict) else None) or {},
            "filtered_count": len(filtered),
            "results": filtered,
        },
    }


# --- Reference data ---


async def list_titles(client: EcfrClient) -> dict[str, Any]:
    return {"endpoint": TITLES_PATH, "data": await client.fetch_titles()}


async def list_agencies(client: EcfrClient) -> dict[str, Any]:
    return {"endpoint": AGENCIES_PATH, "data": await client.fetch_agencies()}


async def get_corrections(
    client: EcfrClient,
    title: int | None = None,
    date: str | None = None,
    error_corrected_date: str | None = None,
) -> dict[str, Any]:
    """Fetch correction notices filtered by title and correction/occurrence date."""
    data = await client.fetch_corrections()
    corrections = data.get("ecfr_corrections") if isinstance(data, dict) else None
    if not isinstance(corrections, list):
        corrections = []

    def keep(correction: Any) -> bool:
        if not isinstance(correction, dict):
            return False
        if title is not None and not _same(correction.get("title"), title):
            return False
        corrected = correction.get("error_corrected")
        occurred = correction.get("error_occurred")
        if error_corrected_date and corrected != error_corrected_date:
            return False
        if date and corrected != date and occurred != date:
            return False
        return True

    filtered = [correction for correction in corrections if keep(correction)]
    return {
        "endpoint": CORRECTIONS_PATH,
        "params": {"title": title, "date": date, "error_corrected_date": error_corrected_date},
        "meta": {"total": len(corrections), "filtered": len(filtered)},
        "corrections": filtered,
    }


async def get_title_versions(
    client: EcfrClient,
    title: int,
    issue_date_gte: str | None = None,
    issue_date_lte: str | None = None,
    after_date: str | None = None,
    before_date: str | None = None,
    part: str | None = None,
    section: str | None = None,
) -> dict[str, Any]:
    """List the distinct issue dates of a title, one representative version per date.

    ``after_date``/``before_date`` are aliases used when the ``issue_date_*``
    bounds are not given.
    """
    data = await client.fetch_versions(title)
    versions = data.get("content_versions") if isinstance(data, dict) else None
    if not isinstance(versions, list):
        versions = []

    lower = issue_date_gte or after_date
    upper = issue_date_lte or before_date

    # First version seen for each issue date represents that date.
    by_date: dict[str, dict[str, Any]] = {}
    for version in versions:
        if not isinstance(version, dict):
            continue
        issue_date = version.get("issue_date") or version.get("date")
        if issue_date and str(issue_date) not in by_date:
            by_date[str(issue_date)] = version

    entries = []
    for issue_date in sorted(by_date):
        if lower and issue_date < lower:
            continue
        if upper and issue_date > upper:
            continue
        sample = by_date[issue_date]
        if part and sample.get("part") and not _same(sample["part"], part):
            continue
        if section and sample.get("identifier") and not _same(sample["identifier"], section):
            continue
        entries.append(
            {
                "date": issue_date,
                "issue_date": issue_date,
                "volume": sample.get("volume"),
                "part": sample.get("part"),
                "section": sample.get("identifier"),
                "name": sample.get("name"),
            }
        )

    return {
        "endpoint": "/api/versioner/v1/versions/title-{title}.json",
        "params": {
            "title": title,
            "issue_date_gte": lower,
            "issue_date_lte": upper,
            "part": part,
            "section": section,
        },
        "data": {"title": title, "versions": entries},
    }


# --- Structure and full text ---


async def get_title_structure(
    client: EcfrClient,
    title: int,
    date: str,
    part: str | None = None,
    format: str = "json",
) -> dict[str, Any] | str:
    """Structure of a title as JSON payload, or as raw XML when ``format == "xml"``."""
    if format == "xml":
        return await client.fetch_structure_xml(date, title, part)
    data = await client.fetch_structure(date, title, part)
    return {
        "endpoint": "/api/versioner/v1/structure/{date}/title-{title}.json",
        "params": {"title": title, "date": date, "part": part},
        "data": data,
    }


async def get_title_ancestry(client: EcfrClient, title: int, date: str) -> dict[str, Any]:
    data = await client.fetch_structure(date, title)
    return {
        "endpoint": "/api/versioner/v1/structure/{date}/title-{title}.json",
        "params": {"title": title, "date": date},
        "data": data,
    }


async def get_title_xml(
    client: EcfrClient,
    date: str,
    title: int,
    part: str | None = None,
    section: str | None = None,
) -> str:
    return await client.fetch_full_xml(date, title, part, section)


async def get_part_xml(client: EcfrClient, date: str, title: int, part: str) -> str:
    return await client.fetch_full_xml(date, title, part)


# --- Section content ---


def _section_queries(title: int, section: str, part: str | None) -> list[str]:
    queries = [f"{title} CFR {section}", section]
    if part:
        queries.append(f"{part} {section}")
    return queries


def _matches_section(entry: Any, title: int, section: str, part: str | None) -> bool:
    hierarchy = _hierarchy(entry)
    if not hierarchy.get("section") or not _same(hierarchy["section"], section):
        return False
    if not hierarchy.get("title") or not _same(hierarchy["title"], title):
        return False
    if part and (not hierarchy.get("part") or not _same(hierarchy["part"], part)):
        return False
    return True


async def resolve_structure_index(
    client: EcfrClient,
    title: int,
    section: str,
    part: str | None = None,
    search_results: int = 200,
) -> tuple[int | str | None, dict[str, Any] | None]:
    """Find the structure index of a section by searching for its citation.

    Tries progressively looser queries and returns the index together with
    the search hit it came from, or ``(None, last_match)`` when none resolves.
    """
    matched: dict[str, Any] | None = None
    for query in _section_queries(title, section, part):
        data = await client.search_results(query=query, order=DEFAULT_SEARCH_ORDER, results=search_results)
        hits = data.get("results") if isinstance(data, dict) else None
        if not isinstance(hits, list):
            continue
        candidates = [entry for entry in hits if _matches_section(entry, title, section, part)]
        if candidates:
            matched = candidates[0]
            if matched.get("structure_index"):
                return matched["structure_index"], matched
    return None, matched


def _parse_content(content_type: str, body: str) -> Any:
    if "application/json" in content_type:
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


async def get_section_content(
    client: EcfrClient,
    title: int,
    date: str,
    section: str | None = None,
    part: str | None = None,
    structure_index: int | None = None,
    search_results: int = 200,
) -> dict[str, Any] | str:
    """Fetch the text of one section.

    Uses ``structure_index`` when given, otherwise resolves it via search.
    If the content endpoint fails and a section number is known, falls back
    to the title XML filtered to that section.
    """
    matched: dict[str, Any] | None = None
    target_index: int | str | None = structure_index
    if not target_index:
        if not section:
            raise SectionResolutionError(
                "Provide either structure_index or a section number to locate content.", title=title
            )
        target_index, matched = await resolve_structure_index(client, title, section, part, search_results)
    if not target_index:
        raise SectionResolutionError(
            "Unable to resolve structure_index for requested section.", title=title, section=section
        )

    try:
        content_type, body = await client.fetch_content(date, target_index)
    except EcfrMCPError as content_error:
        if not section:
            raise
        logger.warning(
            "Content endpoint failed for title %s section %s (%s); falling back to XML",
            title,
            section,
            content_error,
        )
        return await client.fetch_full_xml(date, title, part, section)

    hierarchy = _hierarchy(matched) if matched else {}
    headings = matched.get("headings") if matched and isinstance(matched.get("headings"), dict) else {}
    citation = None
    if hierarchy.get("section") and hierarchy.get("title"):
        citation = f"{hierarchy['title']} CFR {hierarchy['section']}"

    return {
        "endpoint": "/api/versioner/v1/content/{date}/{structure_index}",
        "params": {
            "title": title,
            "date": date,
            "section": section or hierarchy.get("section"),
            "part": part or hierarchy.get("part"),
            "structure_index": target_index,
        },
        "content": _parse_content(content_type, body),
        "heading": headings.get("section"),
        "citation": citation,
        "hierarchy": hierarchy or None,
    }
