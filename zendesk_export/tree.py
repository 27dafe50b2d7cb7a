"""
In-memory model of everything fetched during one run.

Resources are inserted top-down, each together with its Placement, in the
order the exporter visits them. A resource that was never inserted (its
listing failed, its directory could not be reconciled, or it simply has not
been visited yet) cannot be found, and links pointing at it are left alone.
"""

from collections import defaultdict
from pathlib import Path

from .models import LOCALE


class ResourceTree:
    def __init__(self, root):
        self.root = Path(root).absolute()
        self.locales = []
        self._children = defaultdict(list)   # (kind, id, locale) -> child records in visit order
        self._index = defaultdict(dict)      # (kind, str(id)) -> {locale: record}
        self._placements = {}                # (kind, str(id), locale) -> Placement

    # ---- Building ----------------------------------------------------------------------------------------------------------

    def add(self, record, placement=None, parent=None):
        """
        Insert a fetched record under parent (None for locales). Attachments
        have no directory of their own and are inserted without a placement.
        """
        locale = locale_of(record)
        if record.kind == LOCALE:
            self.locales.append(record)
        else:
            if parent is None:
                raise ValueError(f"{record.kind} {record.remote_id} needs a parent")
            self._children[record_key(parent)].append(record)
        self._index[(record.kind, str(record.remote_id))].setdefault(locale, record)
        if placement is not None:
            self._placements[(record.kind, str(record.remote_id), locale)] = placement
        return record

    # ---- Lookup ------------------------------------------------------------------------------------------------------------

    def find_by_remote_id(self, kind, remote_id, locale=None):
        """
        Return the record of that kind and id, or None if it was never inserted.
        Zendesk reuses ids across translations, so a locale narrows the match;
        without one the first inserted translation wins.
        """
        found = self._index.get((kind, str(remote_id)))
        if not found:
            return None
        if locale is None:
            return next(iter(found.values()))
        return found.get(locale)

    def placement(self, kind, remote_id, locale):
        return self._placements.get((kind, str(remote_id), locale))

    def placement_of(self, record):
        return self.placement(record.kind, record.remote_id, locale_of(record))

    def children(self, record):
        return list(self._children.get(record_key(record), ()))

    def categories(self, locale):
        return self.children(locale)

    def sections(self, category):
        return self.children(category)

    def articles(self, section):
        return self.children(section)

    def attachments(self, article):
        return self.children(article)

    def walk_articles(self):
        """Yield (locale, category, section, article) in traversal order."""
        for locale in self.locales:
            for category in self.categories(locale):
                for section in self.sections(category):
                    for article in self.articles(section):
                        yield locale, category, section, article

    # ---- Serialization -----------------------------------------------------------------------------------------------------

    def _local_path(self, record):
        placement = self.placement_of(record)
        if placement is None:
            return None
        target = placement.page if record.kind != LOCALE else placement.directory
        return _relative(target, self.root)

    def to_metadata(self, attachment_paths=None):
        """
        The whole tree as nested JSON-ready dicts. Each entry is the raw API
        record plus local_path (relative to the output root). attachment_paths
        maps (locale code, attachment id) -> mirrored file for the ones that
        made it to disk; each locale keeps its own copy of an attachment.
        """
        attachment_paths = attachment_paths or {}

        def attachment_entry(attachment, code):
            entry = dict(attachment.raw) or {"id": attachment.remote_id, "file_name": attachment.file_name}
            path = attachment_paths.get((code, attachment.remote_id))
            entry["local_path"] = _relative(path, self.root) if path else None
            return entry

        def entry(record, nested_key, nested):
            data = dict(record.raw)
            data["local_path"] = self._local_path(record)
            data[nested_key] = nested
            return data

        locales = []
        for locale in self.locales:
            categories = []
            for category in self.categories(locale):
                sections = []
                for section in self.sections(category):
                    articles = []
                    for article in self.articles(section):
                        articles.append(entry(article, "attachments",
                                              [attachment_entry(a, locale.code) for a in self.attachments(article)]))
                    sections.append(entry(section, "articles", articles))
                categories.append(entry(category, "sections", sections))
            locales.append({
                "id": locale.remote_id,
                "locale": locale.code,
                "local_path": self._local_path(locale),
                "categories": categories,
            })
        return {"locales": locales}


def locale_of(record):
    if record.kind == LOCALE:
        return record.code
    return getattr(record, "locale", None)


def record_key(record):
    return (record.kind, str(record.remote_id), locale_of(record))


def _relative(path, root):
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return Path(path).as_posix()
