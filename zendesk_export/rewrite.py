"""
Localize the links inside article bodies.

Three passes, always in this order:

  1. attachment URLs   .../hc/[locale/]article_attachments/{id}/{name}.{ext}
                       -> mirrored file, e.g. ../../../attachments/99-diagram.png
  2. cross-references  .../hc/[locale/]{categories,sections,articles}/{id}[-slug][#anchor]
                       -> that resource's index.html, if it is in the tree
  3. headings          if the body has an <h1>, every h1..h5 moves down a level
                       so the page title stays the only h1

Both absolute Zendesk URLs (https://acme.zendesk.com/hc/...) and quoted
root-relative ones ("/hc/...") are recognised. Anything that cannot be
resolved is left exactly as it was.
"""

import os
import re
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from .models import ARTICLE, ATTACHMENT, CATEGORY, SECTION, Attachment

_HC = r"""(?:https?://[^./"'\s]+\.zendesk\.com|(?<=["']))/hc/(?:([\w-]+)/)?"""

ATTACHMENT_URL = re.compile(
    r"""(["'])(""" + _HC + r"""article_attachments/(\d+)/([^/"'?#\s]+)\.(\w+))\1""",
    re.IGNORECASE,
)

RESOURCE_URL = re.compile(
    _HC + r"""(categories|sections|articles)/(\d+)(?:-[^"'\s<>#?]*)?(?:\?[^"'\s<>#]*)?(#[^"'\s<>]*)?""",
    re.IGNORECASE,
)

_KINDS = {"categories": CATEGORY, "sections": SECTION, "articles": ARTICLE}

_HAS_H1 = re.compile(r"<h1\b", re.IGNORECASE)
_HEADING = re.compile(r"<(/?)h([1-5])\b", re.IGNORECASE)


@dataclass
class RewriteContext:
    """Where the page being rewritten lives, and what it pulled in."""

    page_dir: Path
    attachments_dir: Path
    locale: Optional[str] = None
    discovered: list = field(default_factory=list)   # Attachment records found in the body


def relative_link(target, page_dir):
    return Path(os.path.relpath(target, page_dir)).as_posix()


def shift_headings(body):
    if not _HAS_H1.search(body):
        return body
    return _HEADING.sub(lambda m: f"<{m.group(1)}h{int(m.group(2)) + 1}", body)


class LinkRewriter:
    def __init__(self, tree, mirror):
        self.tree = tree
        self.mirror = mirror

    def rewrite(self, body, context):
        if not isinstance(body, str):
            return body
        body = self.localize_attachments(body, context)
        body = self.localize_references(body, context)
        return shift_headings(body)

    def localize_attachments(self, body, context):
        def replace(m):
            quote, url, _locale, attachment_id, stem, ext = m.groups()
            attachment = self._attachment(int(attachment_id), f"{unquote(stem)}.{ext}",
                                          url if url.startswith("http") else "")
            path = self.mirror.ensure_local(attachment, context.attachments_dir)
            if path is None:
                return m.group(0)
            context.discovered.append(attachment)
            return f"{quote}{relative_link(path, context.page_dir)}{quote}"

        return ATTACHMENT_URL.sub(replace, body)

    def _attachment(self, attachment_id, file_name, url):
        """
        The listed record for attachment_id if there is one, so a file is named
        the same way whether it was reached from the listing or from a body.
        The URL's file name (which Zendesk may spell differently) is only a
        fallback. A root-relative URL without a listed record has no host to
        download from, so only an already mirrored file can be linked.
        """
        known = self.tree.find_by_remote_id(ATTACHMENT, attachment_id)
        if known is None:
            return Attachment(remote_id=attachment_id, file_name=file_name, content_url=url)
        if not known.content_url and url:
            return dataclasses.replace(known, content_url=url)
        return known

    def localize_references(self, body, context):
        def replace(m):
            url_locale, kind_segment, remote_id, fragment = m.groups()
            kind = _KINDS[kind_segment.lower()]
            placement = None
            for locale in _unique(url_locale and url_locale.lower(), context.locale):
                if self.tree.find_by_remote_id(kind, remote_id, locale) is not None:
                    placement = self.tree.placement(kind, remote_id, locale)
                    break
            if placement is None:
                return m.group(0)
            return relative_link(placement.page, context.page_dir) + (fragment or "")

        return RESOURCE_URL.sub(replace, body)


def _unique(*values):
    seen = []
    for v in values:
        if v and v not in seen:
            seen.append(v)
    return seen

