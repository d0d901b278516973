"""Pydantic models for the eCFR MCP server.

Upstream payloads are loosely structured, so the boundary models declare
every field optional and keep unknown keys. Output models describe the
change report returned by the comparison tools.
"""

from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

ChangeType = Literal["added", "removed", "modified", "effective", "cross_reference"]
SearchOrder = Literal["relevance", "newest", "oldest"]
StructureFormat = Literal["json", "xml"]

MODIFIED_DESCRIPTION = "Section metadata changed between snapshots."


# === Upstream Boundary Models ===


class StructureNode(BaseModel):
    """One node of a title's structure document.

    Scalar metadata is opaque and only ever compared for equality, so the
    fields are typed ``Any`` and validation never rejects a JSON object.
    """

    model_config = ConfigDict(extra="allow")

    type: Any = None
    identifier: Any = None
    label: Any = None
    label_description: Any = None
    reserved: Any = None
    received_on: Any = None
    size: Any = None
    hierarchy: Any = None
    children: Any = None

    @property
    def heading(self) -> Any:
        """Best-effort display heading."""
        if self.label_description is not None:
            return self.label_description
        return self.label

    @property
    def hierarchy_part(self) -> Any:
        """The part number recorded in the node's hierarchy, if any."""
        if isinstance(self.hierarchy, dict):
            return self.hierarchy.get("part")
        return None


class TitleMeta(BaseModel):
    """One entry of the titles listing. Fields are opaque, like StructureNode's."""

    model_config = ConfigDict(extra="allow")

    number: Any = None
    name: Any = None
    latest_issue_date: Any = None
    latest_amended_on: Any = None
    up_to_date_as_of: Any = None
    reserved: Any = None


SectionMap = dict[str, StructureNode]


# === Change Report Models ===


class SectionMetadata(BaseModel):
    """Snapshot of the opaque metadata of one section version."""

    received_on: Any = None
    reserved: Any = None
    size: Any = None

    @classmethod
    def from_node(cls, node: StructureNode) -> "SectionMetadata":
        return cls(received_on=node.received_on, reserved=node.reserved, size=node.size)


class ChangeRecord(BaseModel):
    """Fields shared by every detected difference."""

    type: str
    section: str
    citation: str
    part: Any = None
    change_date: str


class SectionChange(ChangeRecord):
    """A section that was added or removed between snapshots."""

    type: Literal["added", "removed"]
    heading: Any = None


class ModifiedSection(ChangeRecord):
    """A section present in both snapshots whose metadata differs."""

    type: Literal["modified"] = "modified"
    description: str = MODIFIED_DESCRIPTION
    start_metadata: SectionMetadata
    end_metadata: SectionMetadata


class ChangeSummary(BaseModel):
    """Aggregate counts over a (filtered) change list."""

    total_changes: int = 0
    sections_added: int = 0
    sections_removed: int = 0
    sections_modified: int = 0


class ComparisonResult(BaseModel):
    """Result of comparing two snapshots of one title."""

    summary: ChangeSummary
    changes: list[SectionChange | ModifiedSection]
