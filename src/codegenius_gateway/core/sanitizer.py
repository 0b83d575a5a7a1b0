"""Response sanitizer.

Models asked for bare JSON still wrap it in markdown fences or add a
sentence of commentary around it. ``sanitize`` cuts the reply down to the
most plausible JSON substring and never raises; text that still fails to
parse is handled by the validator as a degraded result.
"""

from __future__ import annotations

import re

_LEADING_FENCE = re.compile(r"^```[\w+#.-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


def _strip_fences(text: str) -> str:
    text = _LEADING_FENCE.sub("", text, count=1).strip()
    return _TRAILING_FENCE.sub("", text, count=1).strip()


def sanitize(raw: str) -> str:
    """Extract the best-effort JSON substring from a raw model reply.

    Steps: trim, strip leading/trailing code fences (repeatedly, so nested
    fences collapse), then slice from the first ``{`` to the last ``}``
    when both exist in that order. Anything else is returned as is.

    The function is idempotent: ``sanitize(sanitize(x)) == sanitize(x)``.
    """
    if not isinstance(raw, str):
        return ""

    text = raw.strip()
    while True:
        stripped = _strip_fences(text)
        if stripped == text:
            break
        text = stripped

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and start < end:
        return text[start : end + 1]
    return text
