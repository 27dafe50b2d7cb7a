"""
Records fetched from the Help Center API, and where they live on disk.

The records are frozen: they are exactly what the API returned for this run.
Anything computed from the local filesystem lives in a Placement, joined to
its record by (kind, remote_id, locale).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

LOCALE = "locale"
CATEGORY = "category"
SECTION = "section"
ARTICLE = "article"
ATTACHMENT = "attachment"

KINDS = (LOCALE, CATEGORY, SECTION, ARTICLE, ATTACHMENT)


@dataclass(frozen=True)
class Locale:
    remote_id: int
    code: str
    kind = LOCALE

    @property
    def display_name(self):
        return self.code


@dataclass(frozen=True)
class Category:
    remote_id: int
    name: str
    locale: str
    description: str = ""
    html_url: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    kind = CATEGORY

    @property
    def display_name(self):
        return self.name

    @classmethod
    def from_api(cls, record, locale):
        return cls(
            remote_id=record["id"],
            name=record.get("name") or "",
            locale=locale,
            description=record.get("description") or "",
            html_url=record.get("html_url"),
            raw=record,
        )


@dataclass(frozen=True)
class Section:
    remote_id: int
    name: str
    locale: str
    category_id: int
    description: str = ""
    html_url: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    kind = SECTION

    @property
    def display_name(self):
        return self.name

    @classmethod
    def from_api(cls, record, locale, category_id):
        return cls(
            remote_id=record["id"],
            name=record.get("name") or "",
            locale=locale,
            # the API reports category_id itself; fall back to the parent we listed under
            category_id=record.get("category_id") or category_id,
            description=record.get("description") or "",
            html_url=record.get("html_url"),
            raw=record,
        )


@dataclass(frozen=True)
class Article:
    remote_id: int
    title: str
    locale: str
    section_id: int
    body: Optional[str] = None
    html_url: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    kind = ARTICLE

    @property
    def display_name(self):
        return self.title

    @classmethod
    def from_api(cls, record, locale, section_id):
        return cls(
            remote_id=record["id"],
            title=record.get("title") or record.get("name") or "",
            locale=locale,
            section_id=record.get("section_id") or section_id,
            body=record.get("body"),
            html_url=record.get("html_url"),
            raw=record,
        )


@dataclass(frozen=True)
class Attachment:
    remote_id: int
    file_name: str
    content_url: str
    article_id: Optional[int] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    kind = ATTACHMENT

    @property
    def display_name(self):
        return self.file_name

    @classmethod
    def from_api(cls, record, article_id=None):
        return cls(
            remote_id=record["id"],
            file_name=record.get("file_name") or "",
            content_url=record.get("content_url") or "",
            article_id=record.get("article_id") or article_id,
            content_type=record.get("content_type"),
            size=record.get("size"),
            raw=record,
        )


@dataclass(frozen=True)
class Placement:
    """The directory a resource was reconciled to during this run."""

    kind: str
    remote_id: int
    locale: str
    directory: Path

    @property
    def page(self):
        return self.directory / "index.html"
