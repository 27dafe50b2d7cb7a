"""
Identity providers for resources the API hands out without a numeric id.

Zendesk locales are plain codes ("en-us", "nl") but the path reconciler keys
every directory on a numeric id. The provider turns a code into a stable id;
swap it out if the API ever starts returning real locale ids.
"""


class CharCodeIdentity:
    """Concatenate the decimal character codes: "nl" -> 110108."""

    def remote_id(self, code):
        if not code:
            raise ValueError("cannot derive an id from an empty locale code")
        return int("".join(str(ord(ch)) for ch in code))


DEFAULT_IDENTITY = CharCodeIdentity()
