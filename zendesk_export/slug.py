"""Filesystem-safe name tokens for help center resources."""

import re

from slugify import slugify as _slugify

# Punctuation is dropped outright ("don't" -> "dont"); python-slugify would
# turn it into a separator instead.
_PUNCTUATION = re.compile(r"[^\w\s-]")
# Left for python-slugify to turn into "-": whitespace, nothing else by then.
_DISALLOWED = r"[^\w-]+"


def slugify(text):
    """
    Lowercase, trimmed, hyphen-separated token for a display name.

    Deterministic and total: "Hello, World!" -> "hello-world", "" -> "".
    Unicode word characters are kept as-is (no transliteration), so the
    token for a given name never changes between python-slugify releases.
    """
    text = _PUNCTUATION.sub("", str(text or ""))
    return _slugify(text, allow_unicode=True, regex_pattern=_DISALLOWED, separator="-")
