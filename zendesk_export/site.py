"""
Write the browsable site: article pages, tables of contents, metadata.

Every link is relative, computed from the placements in the tree, so the
export can be opened straight from disk or copied anywhere.
"""

import json
import logging
import re
from html import escape

import yaml
from markdownify import markdownify

from .rewrite import relative_link
from .tree import record_key

log = logging.getLogger(__name__)

DEFAULT_STYLESHEET = "https://output.jsbin.com/gefofo.css"
METADATA_FILE = "meta_data.json"

PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="UTF-8">
    <title>{title}</title>
{stylesheet}  </head>
  <body>
    <div id="container">
{content}
    </div>
  </body>
</html>
"""


def boilerplate_html(title, content, stylesheet=DEFAULT_STYLESHEET):
    link = f'    <link rel="stylesheet" href="{escape(stylesheet)}" />\n' if stylesheet else ""
    return PAGE.format(title=escape(title), stylesheet=link, content=content)


# ---- Markdown ---------------------------------------------------------------------------------------------------------------
def to_md(html, heading_style="ATX"):
    """Convert an article body to clean Markdown."""
    if not html:
        return ""
    result = markdownify(html, heading_style=heading_style, bullets="-",
                         strip=["script", "style"], newline_style="backslash")
    # markdownify can leave runs of 3+ blank lines around block elements; collapse them
    return re.sub(r"\n{3,}", "\n\n", result).strip()


def frontmatter(fields):
    """
    YAML frontmatter block, skipping None values. False is kept: draft: false
    and promoted: false are meaningful to templates filtering on them.
    """
    clean = {k: v for k, v in fields.items() if v is not None}
    return "---\n" + yaml.dump(clean, allow_unicode=True, default_flow_style=False, sort_keys=False) + "---"


# ---- Site -------------------------------------------------------------------------------------------------------------------
class SiteGenerator:
    def __init__(self, tree, stylesheet=DEFAULT_STYLESHEET, number_titles=False, markdown=False):
        self.tree = tree
        self.stylesheet = stylesheet
        self.markdown = markdown
        self._titles = self._number(number_titles)

    def _number(self, enabled):
        """
        Display titles keyed by (kind, id, locale). Numbering ("1.", "1-2.",
        "1-2-3.") follows traversal order and never touches directory names.
        """
        titles = {}
        for locale in self.tree.locales:
            titles[record_key(locale)] = locale.code
            for ci, category in enumerate(self.tree.categories(locale), 1):
                titles[record_key(category)] = f"{ci}. {category.name}" if enabled else category.name
                for si, section in enumerate(self.tree.sections(category), 1):
                    titles[record_key(section)] = f"{ci}-{si}. {section.name}" if enabled else section.name
                    for ai, article in enumerate(self.tree.articles(section), 1):
                        titles[record_key(article)] = f"{ci}-{si}-{ai}. {article.title}" if enabled else article.title
        return titles

    def title(self, record):
        return self._titles.get(record_key(record), record.display_name)

    def _write(self, path, content):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        log.debug("  wrote %s", path)

    # ---- Articles ----------------------------------------------------------------------------------------------------------

    def write_article(self, article, body):
        """Write the article page (and index.md when enabled) with an already rewritten body."""
        placement = self.tree.placement_of(article)
        title = self.title(article)
        content = "\n".join([
            "<a href='../index.html'>[↑]</a>",
            f"<h1>{escape(title)}</h1>",
            body or "",
        ])
        self._write(placement.page, boilerplate_html(title, content, self.stylesheet))

        if self.markdown:
            raw = article.raw
            fm = frontmatter({
                "title":      title,
                "zendesk_id": article.remote_id,
                "locale":     article.locale,
                "section_id": article.section_id,
                "html_url":   article.html_url,
                "draft":      raw.get("draft"),
                "promoted":   raw.get("promoted"),
                # `or None` so an empty label list is omitted rather than written as []
                "labels":     raw.get("label_names") or None,
                "created_at": raw.get("created_at"),
                "updated_at": raw.get("updated_at"),
            })
            md = to_md(body)
            self._write(placement.directory / "index.md", f"{fm}\n\n# {title}\n\n{md}\n" if md else f"{fm}\n\n# {title}\n")

    # ---- Tables of contents ------------------------------------------------------------------------------------------------

    def _link(self, record, from_dir):
        placement = self.tree.placement_of(record)
        return relative_link(placement.page, from_dir)

    def _toc(self, records, from_dir, nested=None):
        """<ul> of links to records, each optionally followed by the nested list of its children."""
        if not records:
            return ""
        lines = ["<ul>"]
        for record in records:
            lines.append("<li>")
            lines.append(f"<a id='{record.kind}-{record.remote_id}' href='{escape(self._link(record, from_dir))}'>"
                         f"{escape(self.title(record))}</a>")
            if nested:
                lines.append(nested(record, from_dir))
            lines.append("</li>")
        lines.append("</ul>")
        return "\n".join(lines)

    def _section_toc(self, section, from_dir):
        return self._toc(self.tree.articles(section), from_dir)

    def _category_toc(self, category, from_dir):
        return self._toc(self.tree.sections(category), from_dir, self._section_toc)

    def _locale_toc(self, locale, from_dir):
        return self._toc(self.tree.categories(locale), from_dir, self._category_toc)

    def _page(self, title, toc, up=True):
        parts = ["<a href='../index.html'>[↑]</a>"] if up else []
        parts.append(f"<h1>{escape(title)}</h1>")
        parts.append(toc)
        return boilerplate_html(title, "\n".join(parts), self.stylesheet)

    def overview_files(self):
        """Map of index.html path -> html for every level of the tree."""
        root = self.tree.root
        files = {root / "index.html": self._page("Table of Contents",
                                                 self._toc(self.tree.locales, root, self._locale_toc), up=False)}
        for locale in self.tree.locales:
            placement = self.tree.placement_of(locale)
            files[placement.page] = self._page(self.title(locale), self._locale_toc(locale, placement.directory))
            for category in self.tree.categories(locale):
                placement = self.tree.placement_of(category)
                files[placement.page] = self._page(self.title(category),
                                                   self._category_toc(category, placement.directory))
                for section in self.tree.sections(category):
                    placement = self.tree.placement_of(section)
                    files[placement.page] = self._page(self.title(section),
                                                       self._section_toc(section, placement.directory))
        return files

    def write_table_of_contents(self):
        files = self.overview_files()
        for path, html in files.items():
            self._write(path, html)
        log.info("  %d index pages written", len(files))

    # ---- Metadata ----------------------------------------------------------------------------------------------------------

    def write_metadata(self, attachment_paths=None):
        path = self.tree.root / METADATA_FILE
        self._write(path, json.dumps(self.tree.to_metadata(attachment_paths), indent=2, ensure_ascii=False) + "\n")
        return path

