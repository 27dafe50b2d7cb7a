from __future__ import annotations

import pytest

from zendesk_export.api import ApiResponseError

SUB = "https://acme.zendesk.com"


class FakeClient:
    """In-memory stand-in for HelpCenterClient. Any listing can be made to fail."""

    def __init__(self, locales=("en-us",)) -> None:
        self._locales = list(locales)
        self.categories_by_locale: dict[str, list[dict]] = {}
        self.sections_by_category: dict[tuple[str, int], list[dict]] = {}
        self.articles_by_section: dict[tuple[str, int], list[dict]] = {}
        self.attachments_by_article: dict[int, list[dict]] = {}
        self.blobs: dict[str, bytes] = {}
        self.failing: set[tuple] = set()
        self.fetched_urls: list[str] = []

    def _check(self, *key) -> None:
        if key in self.failing:
            raise ApiResponseError(f"{SUB}/api/v2/help_center/{key[0]}", 403, {"Content-Type": "application/json"},
                                   '{"error": "Forbidden"}')

    def locales(self) -> list[str]:
        self._check("locales")
        return list(self._locales)

    def categories(self, locale):
        self._check("categories", locale)
        return list(self.categories_by_locale.get(locale, []))

    def sections(self, locale, category_id):
        self._check("sections", category_id)
        return list(self.sections_by_category.get((locale, category_id), []))

    def articles(self, locale, section_id):
        self._check("articles", section_id)
        return list(self.articles_by_section.get((locale, section_id), []))

    def attachments(self, article_id):
        self._check("attachments", article_id)
        return list(self.attachments_by_article.get(article_id, []))

    def fetch_bytes(self, url):
        self.fetched_urls.append(url)
        self._check("fetch", url)
        if url not in self.blobs:
            raise ApiResponseError(url, 404, {}, "not found")
        return self.blobs[url]


def attachment_url(attachment_id, file_name, locale="en-us"):
    return f"{SUB}/hc/{locale}/article_attachments/{attachment_id}/{file_name}"


def article_url(article_id, slug="", locale="en-us"):
    suffix = f"-{slug}" if slug else ""
    return f"{SUB}/hc/{locale}/articles/{article_id}{suffix}"


@pytest.fixture
def faq_client() -> FakeClient:
    """1 locale, category 10 "FAQ", section 20 "General", article 30 "Getting Started" with one image."""
    client = FakeClient()
    image = attachment_url(99, "diagram.png")
    client.categories_by_locale["en-us"] = [{"id": 10, "name": "FAQ", "locale": "en-us"}]
    client.sections_by_category[("en-us", 10)] = [{"id": 20, "name": "General", "category_id": 10}]
    client.articles_by_section[("en-us", 20)] = [
        {
            "id": 30,
            "title": "Getting Started",
            "section_id": 20,
            "body": f'<p>See the picture:</p><img src="{image}" alt="diagram">',
            "draft": False,
            "label_names": ["intro"],
        }
    ]
    client.attachments_by_article[30] = [
        {"id": 99, "file_name": "diagram.png", "content_url": image, "content_type": "image/png", "size": 4}
    ]
    client.blobs[image] = b"\x89PNG"
    return client
