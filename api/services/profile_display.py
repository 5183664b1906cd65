"""Helpers for the public profile page: link URLs, vCard export and QR codes."""
from __future__ import annotations

import io
import re

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from api.db.models import Profile

_SCHEME_RE = re.compile(r"^(https?://|mailto:|tel:)", re.IGNORECASE)


def normalize_external_url(value: str) -> str:
    """
    Add https:// to links saved without a scheme.
    mailto: and tel: stay untouched.
    """
    v = (value or "").strip()
    if not v:
        return ""
    if _SCHEME_RE.match(v):
        return v
    return "https://" + v.lstrip("/")


def _escape_vcard(value: str | None) -> str:
    text = (value or "").replace("\\", "\\\\")
    return text.replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def build_vcard(profile: Profile, public_url: str) -> str:
    name = profile.display_name or profile.slug
    parts = name.split(" ", 1)
    first, last = (parts[0], parts[1]) if len(parts) == 2 else (name, "")
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"N:{_escape_vcard(last)};{_escape_vcard(first)};;;",
        f"FN:{_escape_vcard(name)}",
    ]
    if profile.avatar_url and profile.avatar_url.startswith(("http://", "https://")):
        lines.append(f"PHOTO;VALUE=URI:{profile.avatar_url}")
    if profile.phone:
        lines.append(f"TEL;TYPE=CELL:{_escape_vcard(profile.phone)}")
    if profile.email:
        lines.append(f"EMAIL;TYPE=INTERNET:{_escape_vcard(profile.email)}")
    if profile.bio:
        lines.append(f"NOTE:{_escape_vcard(profile.bio)}")
    lines.append(f"URL:{public_url}")
    lines.append("END:VCARD")
    return "\r\n".join(lines) + "\r\n"


def qr_png(payload: str, *, box_size: int = 8) -> bytes:
    qr = qrcode.QRCode(version=None, error_correction=ERROR_CORRECT_M, box_size=box_size, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
