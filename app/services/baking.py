"""Open Badges 3.0 SVG baking.

A baked badge is the badge image with the signed credential embedded, so
the image file alone is enough to verify the award:

  <svg xmlns="http://www.w3.org/2000/svg"
       xmlns:openbadges="https://purl.imsglobal.org/ob/v3p0" ...>
    <openbadges:credential><![CDATA[eyJ...]]></openbadges:credential>
    ...
  </svg>
"""

from __future__ import annotations

import re

from app.core.errors import BakingError

OB_SVG_NAMESPACE = "https://purl.imsglobal.org/ob/v3p0"

_SVG_OPEN_RE = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
_NAMESPACE_RE = re.compile(r'\sxmlns:openbadges="[^"]*"')
_CREDENTIAL_RE = re.compile(
    r"\s*<openbadges:credential\b[^>]*>(.*?)</openbadges:credential>", re.DOTALL
)
_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[(.*?)\]\]>\s*$", re.DOTALL)


def bake_badge(svg: str, credential_jwt: str) -> str:
    """Embed a credential JWT in an SVG; an existing credential is replaced."""
    if not credential_jwt or "]]>" in credential_jwt:
        raise BakingError("Credential cannot be embedded in CDATA")

    svg = _CREDENTIAL_RE.sub("", svg)
    match = _SVG_OPEN_RE.search(svg)
    if match is None:
        raise BakingError("Badge image is not an SVG document")

    open_tag = _NAMESPACE_RE.sub("", match.group(0))
    self_closing = open_tag.endswith("/>")
    head = open_tag[:-2] if self_closing else open_tag[:-1]
    open_tag = f'{head.rstrip()} xmlns:openbadges="{OB_SVG_NAMESPACE}">'

    element = (
        f"\n  <openbadges:credential><![CDATA[{credential_jwt}]]>"
        "</openbadges:credential>"
    )
    tail = "\n</svg>" if self_closing else ""
    return svg[: match.start()] + open_tag + element + tail + svg[match.end() :]


def extract_badge(svg: str) -> str | None:
    """Return the embedded credential JWT, or None when the SVG isn't baked."""
    match = _CREDENTIAL_RE.search(svg)
    if match is None:
        return None
    body = match.group(1)
    cdata = _CDATA_RE.match(body)
    value = cdata.group(1) if cdata else body
    return value.strip() or None
