import re

_NON_SLUG_RE = re.compile(r"[^A-Za-z0-9-]+")


def slugify(text: str) -> str:
    """
    Return a URL-safe alias derived from *text*.

    Every run of characters outside ``[A-Za-z0-9-]`` (accented letters
    included) collapses to a single ``-``; leading and trailing hyphens
    are trimmed and the result is lowercased.  Empty input gives ``""``.
    """
    return _NON_SLUG_RE.sub("-", text).strip("-").lower()
