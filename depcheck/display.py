"""Terminal colouring and plain listing of vulnerabilities."""

from __future__ import annotations

import os
import sys
from typing import Iterable

from depcheck.cve import CVEDetails

__all__ = ["colorize", "advisory_links", "display_vulnerabilities"]

_STYLE_CODES = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "white": "37",
    "hired": "91",
    "hiwhite": "97",
}

_SEVERITY_STYLES = {
    "Critical": "red",
    "High": "hired",
    "Medium": "yellow",
    "Low": "green",
}


def _color_enabled() -> bool:
    if os.environ.get("NO_COLOR", ""):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def colorize(text: str, style: str) -> str:
    """Wrap *text* in the ANSI colour *style* when standard output is a colour terminal."""
    try:
        code = _STYLE_CODES[style.lower()]
    except KeyError:
        raise ValueError(f"unknown style: {style!r}") from None
    if not _color_enabled():
        return text
    return f"\x1b[{code}m{text}\x1b[0m"


def advisory_links(vuln_id: str, url: str) -> list[str]:
    """Reference links for an advisory: NVD or GitHub by ID, then its own URL."""
    links = []
    if vuln_id.startswith("CVE-"):
        links.append(f"https://nvd.nist.gov/vuln/detail/{vuln_id}")
    if vuln_id.startswith("GHSA-"):
        links.append(f"https://github.com/advisories/{vuln_id}")
    if url:
        links.append(url)
    return links


def display_vulnerabilities(vulns: Iterable[CVEDetails]) -> None:
    """Print each vulnerability with its severity, fix version and references."""
    for vuln in vulns:
        severity = f"{vuln.severity} ({vuln.score:.1f})"
        style = _SEVERITY_STYLES.get(vuln.severity)
        if style:
            severity = colorize(severity, style)

        print(f"  {colorize(vuln.id, 'cyan')}: {colorize(vuln.description, 'hiwhite')}")
        print(f"    Severity: {severity}")
        print(f"    Fixed In: {colorize(vuln.fixed_in, 'yellow')}")
        if vuln.details:
            print(f"    Details: {vuln.details}")

        links = advisory_links(vuln.id, vuln.url)
        if links:
            print("    References:")
            for link in links:
                print(f"      - {colorize(link, 'blue')}")
        print()