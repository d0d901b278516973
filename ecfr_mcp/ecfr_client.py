"""Async client for the public eCFR API.

One ``EcfrClient`` wraps one ``httpx.AsyncClient`` and lives for a single
tool invocation. Every non-success response becomes an UpstreamHTTPError
carrying the status, status text and a capped excerpt of the body.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from .config import Settings
from .config import get_settings
from .exceptions import UpstreamConnectionError
from .exceptions import UpstreamHTTPError
from .metrics_config import record_upstream_request
from .models import TitleMeta

logger = logging.getLogger(__name__)

# --- Endpoint templates ---
STRUCTURE_PATH = "/api/versioner/v1/structure/{date}/title-{title}.{extension}"
TITLES_PATH = "/api/versioner/v1/titles.json"
FULL_XML_PATH = "/api/versioner/v1/full/{date}/title-{title}.xml"
VERSIONS_PATH = "/api/versioner/v1/versions/title-{title}.json"
CONTENT_PATH = "/api/versioner/v1/content/{date}/{structure_index}"
SEARCH_RESULTS_PATH = "/api/search/v1/results.json"
SEARCH_SUMMARY_PATH = "/api/search/v1/summary.json"
AGENCIES_PATH = "/api/admin/v1/agencies.json"
CORRECTIONS_PATH = "/api/admin/v1/corrections.json"


def _segment(value: Any) -> str:
    """Percent-encode one path segment."""
    return quote(str(value), safe="")


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """Drop unset query parameters."""
    if not params:
        return {}
    return {key: value for key, value in params.items() if value is not None and value != ""}


def clamp_end_date(requested: str, latest_issue_date: Any) -> str:
    """Clamp ``requested`` to the latest published issue date of a title.

    Both dates are ``YYYY-MM-DD`` strings, which sort chronologically. A
    missing or non-string issue date leaves ``requested`` unchanged.
    """
    if isinstance(latest_issue_date, str) and latest_issue_date and requested > latest_issue_date:
        return latest_issue_date
    return requested


class EcfrClient:
    """Thin async wrapper around the eCFR endpoints used by the tools."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        error_body_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.ecfr_base_url).rstrip("/")
        self.error_body_limit = error_body_limit or settings.error_body_limit
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            headers={"User-Agent": settings.user_agent},
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> EcfrClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Raw request helpers ---

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        query = _clean_params(params)
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, query)
        started = time.perf_counter()
        try:
            response = await self._client.get(path, params=query)
        except httpx.HTTPError as e:
            record_upstream_request(path, None)
            raise UpstreamConnectionError(url, str(e) or type(e).__name__) from e

        record_upstream_request(path, response.status_code, time.perf_counter() - started)
        if not response.is_success:
            raise UpstreamHTTPError(
                status_code=response.status_code,
                status_text=response.reason_phrase,
                url=str(response.url),
                body=response.text,
                body_limit=self.error_body_limit,
            )
        return response

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(path, params)
        return response.json()

    async def get_text(self, path: str, params: dict[str, Any] | None = None) -> str:
        response = await self._get(path, params)
        return response.text

    # --- Versioner endpoints ---

    async def fetch_structure(self, date: str, title: int, part: str | None = None) -> Any:
        """Fetch the structure document of a title at a date, optionally scoped to a part."""
        path = STRUCTURE_PATH.format(date=_segment(date), title=_segment(title), extension="json")
        return await self.get_json(path, {"part": part})

    async def fetch_structure_xml(self, date: str, title: int, part: str | None = None) -> str:
        path = STRUCTURE_PATH.format(date=_segment(date), title=_segment(title), extension="xml")
        return await self.get_text(path, {"part": part})

    async def fetch_titles(self) -> Any:
        return await self.get_json(TITLES_PATH)

    async def fetch_title_meta(self, title: int) -> TitleMeta | None:
        """Find the titles listing entry whose number matches ``title``."""
        data = await self.fetch_titles()
        titles = data.get("titles") if isinstance(data, dict) else None
        if not isinstance(titles, list):
            return None
        for entry in titles:
            if isinstance(entry, dict) and str(entry.get("number")) == str(title):
                return TitleMeta.model_validate(entry)
        return None

    async def fetch_full_xml(
        self, date: str, title: int, part: str | None = None, section: str | None = None
    ) -> str:
        path = FULL_XML_PATH.format(date=_segment(date), title=_segment(title))
        return await self.get_text(path, {"part": part, "section": section})

    async def fetch_versions(self, title: int) -> Any:
        return await self.get_json(VERSIONS_PATH.format(title=_segment(title)))

    async def fetch_content(self, date: str, structure_index: int | str) -> tuple[str, str]:
        """Fetch section content, returning ``(content_type, body_text)``."""
        path = CONTENT_PATH.format(date=_segment(date), structure_index=_segment(structure_index))
        response = await self._get(path)
        return response.headers.get("content-type", ""), response.text

    # --- Search and admin endpoints ---

    async def search_results(
        self,
        query: str,
        date: str | None = None,
        order: str | None = None,
        results: int | None = None,
    ) -> Any:
        return await self.get_json(
            SEARCH_RESULTS_PATH, {"query": query, "date": date, "order": order, "results": results}
        )

    async def search_summary(self, query: str, date: str | None = None, order: str | None = None) -> Any:
        return await self.get_json(SEARCH_SUMMARY_PATH, {"query": query, "date": date, "order": order})

    async def fetch_agencies(self) -> Any:
        return await self.get_json(AGENCIES_PATH)

    async def fetch_corrections(self) -> Any:
        return await self.get_json(CORRECTIONS_PATH)


def create_client(settings: Settings | None = None) -> EcfrClient:
    """Create a client for one tool invocation."""
    return EcfrClient(settings=settings)
