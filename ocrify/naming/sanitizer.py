import re

MAX_NAME_LENGTH = 50
UNNAMED = "unnamed"

_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9_\-]")
_UNDERSCORE_RUN_RE = re.compile(r"_+")


def sanitize_file_name(name: str) -> str:
    """Make *name* safe for use as a file name.

    Anything outside ``[A-Za-z0-9_-]`` becomes ``_``, underscore runs are
    collapsed, leading/trailing underscores trimmed and the result cut to
    50 characters. Returns ``unnamed`` when nothing is left.
    """
    cleaned = _INVALID_CHARS_RE.sub("_", name)
    cleaned = _UNDERSCORE_RUN_RE.sub("_", cleaned).strip("_")
    return cleaned[:MAX_NAME_LENGTH] or UNNAMED
