from __future__ import annotations

from zendesk_export.attachments import AttachmentMirror
from zendesk_export.models import ARTICLE, CATEGORY, SECTION, Article, Attachment, Category, Locale, Placement, Section
from zendesk_export.reconcile import SLUGIFIED, PathReconciler
from zendesk_export.rewrite import LinkRewriter, RewriteContext, shift_headings
from zendesk_export.tree import ResourceTree

from conftest import SUB, FakeClient, article_url, attachment_url


class Site:
    """A placed en-us tree: category 10 / section 20 / article 30, plus a client serving attachment 99."""

    def __init__(self, root) -> None:
        self.root = root
        self.locale_dir = root / "10111045117115-en-us"
        self.client = FakeClient()
        self.client.blobs[attachment_url(99, "diagram.png")] = b"png"
        self.tree = ResourceTree(root)
        self.locale = Locale(10111045117115, "en-us")
        self.tree.add(self.locale, Placement("locale", self.locale.remote_id, "en-us", self.locale_dir))
        self.category = Category.from_api({"id": 10, "name": "FAQ"}, "en-us")
        self.tree.add(self.category, Placement(CATEGORY, 10, "en-us", self.locale_dir / "10-faq"), parent=self.locale)
        self.section = Section.from_api({"id": 20, "name": "General"}, "en-us", 10)
        self.section_dir = self.locale_dir / "10-faq" / "20-general"
        self.tree.add(self.section, Placement(SECTION, 20, "en-us", self.section_dir), parent=self.category)
        self.article_dir = self.section_dir / "30-getting-started"
        self.add_article(30, "Getting Started")
        self.mirror = AttachmentMirror(self.client, PathReconciler(SLUGIFIED))
        self.rewriter = LinkRewriter(self.tree, self.mirror)

    def add_article(self, article_id, title, locale="en-us") -> None:
        article = Article.from_api({"id": article_id, "title": title}, locale, 20)
        directory = self.section_dir / f"{article_id}-{title.lower().replace(' ', '-')}"
        self.tree.add(article, Placement(ARTICLE, article_id, locale, directory), parent=self.section)

    def context(self) -> RewriteContext:
        return RewriteContext(self.article_dir, self.locale_dir / "attachments", "en-us")


def test_attachment_url_becomes_relative_path_and_is_mirrored(tmp_path) -> None:
    site = Site(tmp_path)
    context = site.context()
    body = f'<img src="{attachment_url(99, "diagram.png")}">'

    result = site.rewriter.rewrite(body, context)

    assert result == '<img src="../../../attachments/99-diagram.png">'
    assert (site.locale_dir / "attachments" / "99-diagram.png").read_bytes() == b"png"
    assert [a.remote_id for a in context.discovered] == [99]


def test_attachment_url_kept_when_download_fails(tmp_path) -> None:
    site = Site(tmp_path)
    body = f"<a href='{attachment_url(55, 'missing.pdf')}'>pdf</a>"
    assert site.rewriter.rewrite(body, site.context()) == body


def test_listed_attachment_name_wins_over_url_file_name(tmp_path) -> None:
    site = Site(tmp_path)
    url = attachment_url(99, "Screen_Shot_1.png")
    site.client.blobs[url] = b"png"
    article = site.tree.find_by_remote_id(ARTICLE, 30)
    site.tree.add(Attachment.from_api({"id": 99, "file_name": "Screen Shot 1.png", "content_url": url}, 30),
                  parent=article)

    result = site.rewriter.rewrite(f'<img src="{url}">', site.context())

    assert result == '<img src="../../../attachments/99-screen-shot-1.png">'
    assert sorted(p.name for p in (site.locale_dir / "attachments").iterdir()) == ["99-screen-shot-1.png"]


def test_quoted_root_relative_attachment_already_mirrored(tmp_path) -> None:
    site = Site(tmp_path)
    (site.locale_dir / "attachments").mkdir(parents=True)
    (site.locale_dir / "attachments" / "77-chart.gif").write_bytes(b"gif")
    body = '<img src="/hc/article_attachments/77/chart.gif">'
    assert site.rewriter.rewrite(body, site.context()) == '<img src="../../../attachments/77-chart.gif">'
    assert site.client.fetched_urls == []


def test_cross_references_resolve_to_relative_pages(tmp_path) -> None:
    site = Site(tmp_path)
    body = (
        f'<a href="{SUB}/hc/en-us/categories/10-FAQ">c</a>'
        f'<a href="{SUB}/hc/en-us/sections/20">s</a>'
        f'<a href="{article_url(30, "Getting-Started")}#step-2">a</a>'
    )
    assert site.rewriter.rewrite(body, site.context()) == (
        '<a href="../../index.html">c</a>'
        '<a href="../index.html">s</a>'
        '<a href="index.html#step-2">a</a>'
    )


def test_reference_to_article_not_yet_visited_is_left_unchanged(tmp_path) -> None:
    site = Site(tmp_path)
    body = f'<a href="{article_url(31, "Later")}">later</a>'
    assert site.rewriter.rewrite(body, site.context()) == body

    site.add_article(31, "Later")
    assert site.rewriter.rewrite(body, site.context()) == '<a href="../31-later/index.html">later</a>'


def test_reference_without_locale_uses_article_locale(tmp_path) -> None:
    site = Site(tmp_path)
    body = f'<a href="{SUB}/hc/articles/30">a</a>'
    assert site.rewriter.rewrite(body, site.context()) == '<a href="index.html">a</a>'


def test_reference_to_other_site_is_left_alone(tmp_path) -> None:
    site = Site(tmp_path)
    body = '<a href="https://example.com/hc/en-us/articles/30">elsewhere</a>'
    assert site.rewriter.rewrite(body, site.context()) == body


def test_headings_shift_only_when_body_has_h1() -> None:
    assert shift_headings("<h1>T</h1><h2 id='x'>S</h2>") == "<h2>T</h2><h3 id='x'>S</h3>"
    assert shift_headings("<h2>S</h2><h3>T</h3>") == "<h2>S</h2><h3>T</h3>"
    assert shift_headings("<H1>T</H1><h5>x</h5><h6>y</h6>") == "<h2>T</h2><h6>x</h6><h6>y</h6>"


def test_rewrite_is_stable_on_second_pass(tmp_path) -> None:
    site = Site(tmp_path)
    body = f'<h1>Intro</h1><img src="{attachment_url(99, "diagram.png")}">'
    once = site.rewriter.rewrite(body, site.context())
    again = site.rewriter.rewrite(body, site.context())
    assert once == again
    assert site.client.fetched_urls == [attachment_url(99, "diagram.png")]


def test_missing_body_is_returned_untouched(tmp_path) -> None:
    site = Site(tmp_path)
    assert site.rewriter.rewrite(None, site.context()) is None
