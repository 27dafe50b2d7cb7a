"""
Export a Zendesk Help Center to a nested folder of static HTML pages.

    <output>/
      index.html                       table of contents of every locale
      meta_data.json                   everything fetched, with local paths
      10111045117115-en-us/
        index.html
        attachments/99-diagram.png
        10-faq/index.html
          20-general/index.html
            30-getting-started/index.html

Renaming a category, section or article upstream renames its folder on the
next run instead of creating a second one, so the same output directory can
be refreshed over and over.

The export runs in two passes:
  Pass 1 walks locale -> category -> section -> article -> attachment listing,
    reconciling each folder as it goes. Nothing is written except folders.
  Pass 2 mirrors attachments and rewrites every article body. Because the
    whole tree is known by then, a link to an article later in traversal
    order resolves just as well as one to an earlier article.
Finally the index pages and meta_data.json are written.

Only one export may write into an output directory at a time.
"""

import logging
import sys
from pathlib import Path

from .api import ApiError, ApiResponseError, HelpCenterClient
from .attachments import ATTACHMENTS_DIR, AttachmentMirror
from .config import ConfigError, load_settings
from .identity import DEFAULT_IDENTITY
from .models import Article, Attachment, Category, Locale, Placement, Section
from .reconcile import PathReconciler, ReconcileError
from .rewrite import LinkRewriter, RewriteContext
from .site import SiteGenerator
from .tree import ResourceTree, locale_of

log = logging.getLogger(__name__)


class ExportError(Exception):
    """Nothing useful can be produced; the run stops."""


def _describe(error):
    return error.describe() if isinstance(error, ApiResponseError) else str(error)


class Exporter:
    def __init__(self, client, output_dir, naming_policy, locales=None, identity=DEFAULT_IDENTITY,
                 markdown=False, number_titles=False, stylesheet=None):
        self.client = client
        self.root = Path(output_dir).absolute()
        self.locales = list(locales or [])
        self.identity = identity
        self.reconciler = PathReconciler(naming_policy)
        self.tree = ResourceTree(self.root)
        self.mirror = AttachmentMirror(client, self.reconciler)
        self.rewriter = LinkRewriter(self.tree, self.mirror)
        self.site_options = {"markdown": markdown, "number_titles": number_titles}
        if stylesheet is not None:
            self.site_options["stylesheet"] = stylesheet
        self.site = None

    def run(self):
        log.info("\n Fetching all contents ... \n")
        self.fetch()
        log.info("\n Localizing all URLs in articles ... \n")
        self.site = SiteGenerator(self.tree, **self.site_options)
        self.materialize()
        log.info("\n Writing tables of contents ... \n")
        self.site.write_table_of_contents()
        self.site.write_metadata(self.mirrored_by_locale())
        log.info("\n Done. %d folders created, %d renamed, %d attachments downloaded.\n",
                 len(self.reconciler.created), len(self.reconciler.renamed), self.mirror.fetched)
        return self.tree

    def mirrored_by_locale(self):
        """(locale code, attachment id) -> file, from the per-directory map the mirror keeps."""
        codes = {self.tree.placement_of(locale).directory / ATTACHMENTS_DIR: locale.code for locale in self.tree.locales}
        return {(codes[directory], remote_id): path
                for (directory, remote_id), path in self.mirror.mirrored.items() if directory in codes}

    # ---- Pass 1: fetch and place -------------------------------------------------------------------------------------------

    def _place(self, record, parent_dir):
        """Reconcile the folder for record; None (logged) if it cannot be done."""
        try:
            directory = self.reconciler.reconcile(parent_dir, record.remote_id, record.display_name)
        except ReconcileError as e:
            log.warning("Skipping %s %s (%s) and everything below it: %s",
                        record.kind, record.remote_id, record.display_name, e)
            return None
        return Placement(record.kind, record.remote_id, locale_of(record), directory)

    def fetch(self):
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(f"Cannot create output directory {self.root}: {e}") from e

        try:
            codes = self.client.locales()
        except ApiError as e:
            raise ExportError(_describe(e)) from e

        if self.locales:
            unknown = sorted(set(self.locales) - set(codes))
            if unknown:
                log.warning("Locale(s) not enabled in the help center, ignored: %s", ", ".join(unknown))
            codes = [c for c in codes if c in self.locales]

        for code in codes:
            locale = Locale(self.identity.remote_id(code), code)
            log.info("[%s] %s", locale.remote_id, code)
            placement = self._place(locale, self.root)
            if placement is None:
                continue
            self.tree.add(locale, placement)
            self.fetch_categories(locale, placement.directory)
        return self.tree

    def fetch_categories(self, locale, locale_dir):
        # a help center without its category listing has nothing to export
        try:
            records = self.client.categories(locale.code)
        except ApiError as e:
            raise ExportError(_describe(e)) from e

        for record in records:
            category = Category.from_api(record, locale.code)
            log.info(" - [%s] %s", category.remote_id, category.name)
            placement = self._place(category, locale_dir)
            if placement is None:
                continue
            self.tree.add(category, placement, parent=locale)
            self.fetch_sections(category, placement.directory)

    def fetch_sections(self, category, category_dir):
        try:
            records = self.client.sections(category.locale, category.remote_id)
        except ApiError as e:
            log.warning("Skipping sections of category %s: %s", category.remote_id, e)
            return

        for record in records:
            section = Section.from_api(record, category.locale, category.remote_id)
            log.info(" - - [%s] %s", section.remote_id, section.name)
            placement = self._place(section, category_dir)
            if placement is None:
                continue
            self.tree.add(section, placement, parent=category)
            self.fetch_articles(section, placement.directory)

    def fetch_articles(self, section, section_dir):
        try:
            records = self.client.articles(section.locale, section.remote_id)
        except ApiError as e:
            log.warning("Skipping articles of section %s: %s", section.remote_id, e)
            return

        for record in records:
            article = Article.from_api(record, section.locale, section.remote_id)
            log.info(" - - - [%s] %s", article.remote_id, article.title)
            placement = self._place(article, section_dir)
            if placement is None:
                continue
            self.tree.add(article, placement, parent=section)
            self.fetch_attachments(article)

    def fetch_attachments(self, article):
        # the article itself is kept; attachments referenced in its body are still mirrored in pass 2
        try:
            records = self.client.attachments(article.remote_id)
        except ApiError as e:
            log.warning("Could not list attachments of article %s: %s", article.remote_id, e)
            return
        for record in records:
            self.tree.add(Attachment.from_api(record, article.remote_id), parent=article)

    # ---- Pass 2: attachments and article bodies ----------------------------------------------------------------------------

    def materialize(self):
        for locale, _category, _section, article in self.tree.walk_articles():
            log.info(" - - - [%s] %s", article.remote_id, article.title)
            attachments_dir = self.tree.placement_of(locale).directory / ATTACHMENTS_DIR
            listed = self.tree.attachments(article)
            for attachment in listed:
                self.mirror.ensure_local(attachment, attachments_dir)

            context = RewriteContext(self.tree.placement_of(article).directory, attachments_dir, article.locale)
            body = self.rewriter.rewrite(article.body, context)

            known = {a.remote_id for a in listed}
            for attachment in context.discovered:
                if attachment.remote_id not in known:
                    known.add(attachment.remote_id)
                    self.tree.add(attachment, parent=article)

            try:
                self.site.write_article(article, body)
            except OSError as e:
                log.warning("Could not write article %s: %s", article.remote_id, e)


# ---- Entry point ----------------------------------------------------------------------------------------------------------------
def main(argv=None):
    try:
        settings = load_settings(argv)
    except ConfigError as e:
        sys.exit(str(e))

    logging.basicConfig(level=logging.DEBUG if settings.verbose else logging.INFO,
                        format="%(asctime)s  %(message)s", datefmt="%H:%M:%S")
    log.info("Zendesk: %s.zendesk.com  |  Output: %s  |  Names: %s",
             settings.subdomain, settings.output_dir, settings.naming_policy)

    client = HelpCenterClient(settings.subdomain, settings.email, password=settings.password,
                              api_token=settings.api_token, rate_limit=settings.rate_limit)
    exporter = Exporter(client, settings.output_dir, settings.naming_policy, locales=settings.locales,
                        markdown=settings.markdown, number_titles=settings.number_titles,
                        stylesheet=settings.stylesheet)
    try:
        exporter.run()
    except ExportError as e:
        log.error("Export failed:\n%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
