"""
Registry data model - Dependents listing as served by the npm website.

The ``/browse/depended/<target>`` page returns this JSON when requested with
``x-spiferack: 1``:

    {
        "title": "...",
        "dependency": "<target>",
        "packages": [
            {
                "name": "...",
                "description": "...",
                "maintainers": ["..."],
                "publisher": {"name": "...", "avatars": {...}},
                "date": {"ts": 1700000000000, "rel": "2 hours ago"},
                "version": "1.0.0"
            }
        ]
    }

Records are immutable snapshots created fresh on every fetch. An entry without
a publish date counts as published at the epoch, so it ends the triage walk.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Publisher(BaseModel):
    """npm user who published the package version"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: Optional[str] = None
    avatars: Dict[str, Any] = Field(default_factory=dict)


class PublishDate(BaseModel):
    """Publish time of the listed version"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    ts: int = 0  # milliseconds since epoch
    rel: Optional[str] = None


class PackageRecord(BaseModel):
    """One dependent package at fetch time"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: Optional[str] = None
    maintainers: List[str] = Field(default_factory=list)
    publisher: Optional[Publisher] = None
    date: PublishDate = Field(default_factory=PublishDate)
    version: Optional[str] = None

    @field_validator("maintainers", mode="before")
    @classmethod
    def _maintainer_names(cls, value):
        if value is None:
            return []
        names = []
        for entry in value:
            if isinstance(entry, dict):
                entry = entry.get("name") or entry.get("username")
            if entry:
                names.append(str(entry))
        return names

    @property
    def ts(self) -> int:
        """Publish timestamp (ms), the sort and filter key"""
        return self.date.ts

    @property
    def is_scoped(self) -> bool:
        """True for ``@scope/name`` packages"""
        return self.name.startswith("@")


class DependentsResponse(BaseModel):
    """Result of one dependents fetch"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: Optional[str] = None
    dependency: str
    packages: List[PackageRecord] = Field(default_factory=list)
