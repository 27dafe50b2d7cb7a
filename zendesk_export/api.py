"""
Authenticated access to the Zendesk Help Center API.

Zendesk API quirks baked into this client:
  - Listings are paginated with a next_page URL in the body. It is an absolute
    URL that already carries page and per_page, so it is requested as-is.
  - Locales have no ids. GET /help_center/locales.json returns plain codes
    ({"locales": ["en-us", "nl"], "default_locale": "en-us"}).
  - Category, section and article listings are per locale
    (/help_center/{locale}/categories.json); attachment listings are not.
  - Attachment content_url values usually point at a different host than the
    API. requests drops the Authorization header when a redirect crosses hosts,
    which is what Zendesk expects.

A non-2xx answer raises ApiResponseError and carries everything needed to
diagnose a wrong subdomain or bad credentials. A connection that never got an
answer raises ApiTransportError. Callers decide which of these are fatal.
"""

import logging
import time

import requests

log = logging.getLogger(__name__)

PER_PAGE = 100
TIMEOUT = 60
# only the API listings; attachment downloads take whatever content type they are
JSON_HEADERS = {"Accept": "application/json"}


class ApiError(Exception):
    """Base class for everything the client raises."""


class ApiTransportError(ApiError):
    """The request never got an HTTP response (DNS, TLS, timeout, reset)."""

    def __init__(self, url, cause):
        super().__init__(f"GET {url} failed: {cause}")
        self.url = url
        self.cause = cause


class ApiResponseError(ApiError):
    """The server answered with a non-success status."""

    def __init__(self, url, status, headers=None, body=""):
        super().__init__(f"GET {url} returned HTTP {status}")
        self.url = url
        self.status = status
        self.headers = dict(headers or {})
        self.body = body

    @classmethod
    def from_response(cls, resp):
        return cls(resp.url, resp.status_code, resp.headers, resp.text)

    def describe(self):
        """Multi-line diagnostic for a failure that ends the run."""
        hint = ""
        if self.status in (401, 403, 404):
            hint = ("Most likely the email / password / API token or the Zendesk "
                    "subdomain is wrong.\n")
        return (
            "Could not fetch from the Zendesk API.\n"
            f"{hint}"
            f"request: GET {self.url}\n"
            f"status:  {self.status}\n"
            f"headers: {self.headers!r}\n"
            f"body:    {self.body[:2000]}"
        )


class HelpCenterClient:
    def __init__(self, subdomain, email, password=None, api_token=None, rate_limit=0.1, session=None):
        self.base_url = f"https://{subdomain}.zendesk.com/api/v2/help_center"
        self.rate_limit = rate_limit
        self.session = session or requests.Session()
        if api_token:
            self.session.auth = (f"{email}/token", api_token)
        else:
            self.session.auth = (email, password)

    # ---- HTTP --------------------------------------------------------------------------------------------------------------

    def _get(self, url, params=None, headers=None):
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=TIMEOUT)
        except requests.RequestException as e:
            raise ApiTransportError(url, e) from e
        finally:
            time.sleep(self.rate_limit)  # be a polite client; rate limit after every call
        if not resp.ok:
            raise ApiResponseError.from_response(resp)
        return resp

    def get_json(self, path, params=None):
        """GET {base}/{path} and decode the JSON body."""
        url = path if path.startswith("http") else f"{self.base_url}/{path.lstrip('/')}"
        resp = self._get(url, params, headers=JSON_HEADERS)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiResponseError(url, resp.status_code, resp.headers, resp.text) from e

    def fetch_all_pages(self, path, key):
        """
        Collect every record under `key` from a paginated listing.
        Follows next_page until the API stops returning one.
        """
        records, page = [], 0
        data = self.get_json(path, {"per_page": PER_PAGE})
        while True:
            page += 1
            records.extend(data.get(key) or [])
            next_page = data.get("next_page")
            if not next_page:
                break
            log.debug("      %s: fetching page %d", path, page + 1)
            data = self.get_json(next_page)
        return records

    # ---- Help Center endpoints ---------------------------------------------------------------------------------------------
    # see https://developer.zendesk.com/api-reference/help_center/help-center-api/

    def locales(self):
        return list(self.get_json("locales.json").get("locales") or [])

    def categories(self, locale):
        return self.fetch_all_pages(f"{locale}/categories.json", "categories")

    def sections(self, locale, category_id):
        return self.fetch_all_pages(f"{locale}/categories/{category_id}/sections.json", "sections")

    def articles(self, locale, section_id):
        return self.fetch_all_pages(f"{locale}/sections/{section_id}/articles.json", "articles")

    def attachments(self, article_id):
        return self.fetch_all_pages(f"articles/{article_id}/attachments.json", "article_attachments")

    def fetch_bytes(self, url):
        """Download a binary (attachment content) with the same credentials."""
        return self._get(url).content
