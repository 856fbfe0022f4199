"""Split LLM replies into the headed sections the prompts ask for.

Models format headings inconsistently ("WHAT HAPPENED:", "## What happened",
"**What Happened**"), so each heading is matched case-insensitively with
optional markdown decoration and an optional trailing colon.
"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.*\S)\s*$")


def _heading_pattern(heading: str) -> re.Pattern:
    words = [re.escape(w).replace("'", "['’]?") for w in heading.split()]
    body = r"\s+".join(words)
    return re.compile(
        rf"^[ \t]*(?:#+[ \t]*)?(?:\*\*|__)?[ \t]*{body}[ \t]*(?:\*\*|__)?[ \t]*(?::(?:\*\*|__)?[ \t]*|$)",
        re.IGNORECASE | re.MULTILINE,
    )


def extract_sections(text: str, headings: Sequence[str]) -> Dict[str, str]:
    """Return {heading: body} for each heading found, in reply order.

    Headings that do not appear are omitted. Body text runs until the next
    recognised heading.
    """
    text = text or ""
    found = []
    for heading in headings:
        m = _heading_pattern(heading).search(text)
        if m:
            found.append((m.start(), m.end(), heading))
    found.sort()

    sections: Dict[str, str] = {}
    for i, (_, end, heading) in enumerate(found):
        stop = found[i + 1][0] if i + 1 < len(found) else len(text)
        sections[heading] = text[end:stop].strip()
    return sections


def extract_bullets(text: str) -> List[str]:
    """Bullet or numbered list items; falls back to non-empty lines."""
    lines = [ln for ln in (text or "").splitlines() if ln.strip()]
    bullets = [m.group(1).strip() for m in (_BULLET_RE.match(ln) for ln in lines) if m]
    if bullets:
        return bullets
    return [ln.strip() for ln in lines]
