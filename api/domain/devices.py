"""User-agent heuristics used when recording card scans."""
from __future__ import annotations

import re

_MOBILE = re.compile(r"mobile", re.I)
_TABLET = re.compile(r"tablet|ipad", re.I)
_DESKTOP = re.compile(r"mozilla", re.I)

# order matters: Edge and Chrome UAs both mention Safari, Edge also mentions Chrome
_BROWSERS = (
    ("Edge", re.compile(r"edg", re.I)),
    ("Chrome", re.compile(r"chrome", re.I)),
    ("Safari", re.compile(r"safari", re.I)),
    ("Firefox", re.compile(r"firefox", re.I)),
)


def classify_device(user_agent: str | None) -> str:
    ua = user_agent or ""
    if _MOBILE.search(ua):
        return "mobile"
    if _TABLET.search(ua):
        return "tablet"
    if _DESKTOP.search(ua):
        return "desktop"
    return "unknown"


def classify_browser(user_agent: str | None) -> str:
    ua = user_agent or ""
    for name, pattern in _BROWSERS:
        if pattern.search(ua):
            return name
    return "unknown"
