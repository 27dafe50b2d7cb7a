"""
Run configuration.

Every setting can come from an environment variable (handy in a container or
a cron job) and be overridden on the command line:

    ZENDESK_EMAIL       -e/--email               agent email (required)
    ZENDESK_PASSWORD    -p/--password            password
    ZENDESK_API_TOKEN   -t/--api-token           API token, instead of a password
    ZENDESK_SUBDOMAIN   -d/--subdomain           e.g. "icecream" for icecream.zendesk.com (required)
    OUTPUT_DIR          -o/--output-dir          where the export is written, default "."
    NAMING_POLICY       -c/--compact-file-names  slugified | id_only (id_only by default on Windows)
    LOCALES             -l/--locale              only these locales (comma separated / repeatable)
    RATE_LIMIT                                   seconds to sleep after each request, default 0.1
    EXPORT_MARKDOWN     --markdown               also write index.md next to each article
    NUMBER_TITLES       --number-titles          "1-2-3. Title" style display titles
    STYLESHEET_URL                               stylesheet linked from every page
    VERBOSE             -v/--verbose-logging     debug logging
"""

import argparse
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .reconcile import ID_ONLY, NAMING_POLICIES, SLUGIFIED
from .site import DEFAULT_STYLESHEET


class ConfigError(Exception):
    """The settings are incomplete or inconsistent."""


def _flag(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def default_policy():
    # Windows paths are limited to 260 characters; slugs make that easy to hit
    return ID_ONLY if sys.platform.startswith("win") else SLUGIFIED


@dataclass
class Settings:
    email: str = ""
    subdomain: str = ""
    password: Optional[str] = None
    api_token: Optional[str] = None
    output_dir: Path = Path(".")
    naming_policy: str = field(default_factory=default_policy)
    locales: list[str] = field(default_factory=list)
    rate_limit: float = 0.1
    markdown: bool = False
    number_titles: bool = False
    stylesheet: str = DEFAULT_STYLESHEET
    verbose: bool = False

    def validate(self):
        missing = [name for name in ("email", "subdomain") if not getattr(self, name)]
        if missing:
            raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")
        if not self.password and not self.api_token:
            raise ConfigError("Provide either a password or an API token")
        if self.naming_policy not in NAMING_POLICIES:
            raise ConfigError(
                f"Naming policy ({self.naming_policy}) not recognized. Should be one of: {', '.join(NAMING_POLICIES)}"
            )
        if self.rate_limit < 0:
            raise ConfigError(f"RATE_LIMIT must not be negative, got {self.rate_limit}")
        return self


def from_env(environ=None):
    env = os.environ if environ is None else environ
    try:
        rate_limit = float(env.get("RATE_LIMIT", "0.1"))
    except ValueError as e:
        raise ConfigError(f"RATE_LIMIT must be a number, got {env.get('RATE_LIMIT')!r}") from e
    return Settings(
        email=env.get("ZENDESK_EMAIL", ""),
        subdomain=env.get("ZENDESK_SUBDOMAIN", ""),
        password=env.get("ZENDESK_PASSWORD") or None,
        api_token=env.get("ZENDESK_API_TOKEN") or None,
        output_dir=Path(env.get("OUTPUT_DIR", ".")),
        naming_policy=env.get("NAMING_POLICY") or default_policy(),
        locales=[code.strip().lower() for code in env.get("LOCALES", "").split(",") if code.strip()],
        rate_limit=rate_limit,
        markdown=_flag(env.get("EXPORT_MARKDOWN", "false")),
        number_titles=_flag(env.get("NUMBER_TITLES", "false")),
        stylesheet=env.get("STYLESHEET_URL", DEFAULT_STYLESHEET),
        verbose=_flag(env.get("VERBOSE", "false")),
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="zendesk-helpcenter-export",
        description="Export a Zendesk Help Center to a nested folder of static HTML pages.",
    )
    parser.add_argument("-e", "--email", help="email of a Zendesk agent with access to the help center")
    parser.add_argument("-p", "--password", help="password")
    parser.add_argument("-t", "--api-token", help="API token, used instead of the password")
    parser.add_argument("-d", "--subdomain", help="Zendesk subdomain (e.g. icecream)")
    parser.add_argument("-o", "--output-dir", type=Path, help="directory to export into")
    parser.add_argument("-l", "--locale", action="append", dest="locales",
                        help="export only this locale (repeatable)")
    parser.add_argument("-c", "--compact-file-names", action="store_true",
                        help="use id-only names for file systems limited to short paths")
    parser.add_argument("--markdown", action="store_true", help="also write index.md next to each article")
    parser.add_argument("--number-titles", action="store_true", help="prefix display titles with their position")
    parser.add_argument("-v", "--verbose-logging", action="store_true", dest="verbose",
                        help="verbose logging to identify possible bugs")
    return parser


def load_settings(argv=None, environ=None):
    """Environment first, command line on top, then validated."""
    settings = from_env(environ)
    args = build_parser().parse_args(argv)
    for name in ("email", "password", "api_token", "subdomain", "output_dir"):
        value = getattr(args, name)
        if value is not None:
            setattr(settings, name, value)
    if args.locales:
        settings.locales = [code.lower() for code in args.locales]
    if args.compact_file_names:
        settings.naming_policy = ID_ONLY
    settings.markdown = settings.markdown or args.markdown
    settings.number_titles = settings.number_titles or args.number_titles
    settings.verbose = settings.verbose or args.verbose
    return settings.validate()
