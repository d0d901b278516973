"""Annotated parameter types shared by the tool modules.

The MCP runtime turns these into each tool's JSON schema and validates
arguments against the bounds and enumerations before a handler runs.
"""

from typing import Annotated

from pydantic import Field

from ..models import ChangeType
from ..models import SearchOrder
from ..models import StructureFormat

TitleNumber = Annotated[int, Field(ge=1, le=50, description="CFR title number, e.g. 21.")]
OptionalTitleNumber = Annotated[
    int | None, Field(ge=1, le=50, description="Optional CFR title number to filter or scope by.")
]
SnapshotDate = Annotated[
    str, Field(min_length=1, description="Point-in-time date in YYYY-MM-DD format, e.g. '2025-01-05'.")
]
SearchDate = Annotated[
    str | None,
    Field(description="Point-in-time date in YYYY-MM-DD format, or 'current'. Defaults to 'current'."),
]
OptionalDate = Annotated[str | None, Field(description="Optional date in YYYY-MM-DD format.")]
SearchQuery = Annotated[
    str,
    Field(
        min_length=1,
        description="Search string, e.g. '21 CFR 1306.04' or 'legitimate medical purpose prescription'.",
    ),
]
Order = Annotated[SearchOrder | None, Field(description="Sort order. Defaults to 'relevance'.")]
ResultLimit = Annotated[
    int | None,
    Field(ge=1, le=1000, description="Maximum number of results to return. Defaults to 50."),
]
OptionalPart = Annotated[str | None, Field(description="Optional CFR part number, e.g. '1306'.")]
RequiredPart = Annotated[str, Field(min_length=1, description="CFR part number, e.g. '1306'.")]
OptionalSection = Annotated[str | None, Field(description="Optional CFR section number, e.g. '1306.04'.")]
ChangeTypes = Annotated[
    list[ChangeType] | None,
    Field(description="Optional filter for change categories. Omit to keep every category."),
]
LookbackDays = Annotated[
    int | None, Field(ge=1, description="Number of days to look back. Defaults to 180.")
]
Format = Annotated[StructureFormat, Field(description="Return format (json | xml). Defaults to json.")]
StructureIndex = Annotated[
    int | None, Field(description="Optional structure_index if already known from search results.")
]
