"""Tabular terminal reports for package analyses."""

from __future__ import annotations

import re
import textwrap
import unicodedata
from typing import Iterable, Sequence

from depcheck.analysis import PackageAnalysis
from depcheck.cve import CVEDetails
from depcheck.display import colorize
from depcheck.semantic import compare_versions

__all__ = [
    "Table",
    "current_severity_label",
    "fixed_severity_label",
    "highest_fixed_version",
    "render_check",
    "render_file",
]

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

_SUMMARY_HEADERS = [
    "PACKAGE",
    "CURRENT",
    "LATEST",
    "PATCHED",
    "BREAKING CHANGES",
    "SECURITY",
    "RECOMMENDATION",
]
_ADVISORY_HEADERS = ["ADVISORY", "SEVERITY", "FIXED IN", "SOURCE", "LINKS"]
_DETAIL_HEADERS = ["ID", "Severity", "Score", "Description", "Fixed In", "References"]
_DETAIL_HEADER_STYLES = ["cyan", "magenta", "yellow", "white", "green", "blue"]

_CURRENT_SEVERITY = {
    "critical": ("🔴 ", "Critical", "red"),
    "high": ("🟣 ", "High", "hired"),
    "medium": ("🟡 ", "Medium", "yellow"),
}
_FIXED_SEVERITY_STYLES = {
    "Critical": "red",
    "High": "hired",
    "Medium": "yellow",
    "Low": "green",
}


def _char_width(char: str) -> int:
    if unicodedata.combining(char) or unicodedata.category(char) in ("Mn", "Me", "Cf"):
        return 0
    return 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1


def _display_width(text: str) -> int:
    return sum(_char_width(char) for char in _ANSI_RE.sub("", text))


def _pad(text: str, width: int) -> str:
    return text + " " * (width - _display_width(text))


class Table:
    """A bordered, left-aligned text table whose cells may hold colour codes."""

    def __init__(
        self,
        headers: Sequence[str],
        *,
        header_styles: Sequence[str] | None = None,
        wrap: bool = False,
        wrap_width: int = 30,
        center: str = "┼",
        column: str = "│",
        row_separator: str = "─",
    ) -> None:
        if header_styles is not None and len(header_styles) != len(headers):
            raise ValueError("one header style is needed for each header")
        self.headers = [header.upper() for header in headers]
        self.header_styles = list(header_styles) if header_styles is not None else None
        self.wrap = wrap
        self.wrap_width = wrap_width
        self.center = center
        self.column = column
        self.row_separator = row_separator
        self.rows: list[list[str]] = []

    def add_row(self, row: Iterable[str]) -> None:
        """Append a row; it must have one cell per header."""
        cells = [str(cell) for cell in row]
        if len(cells) != len(self.headers):
            raise ValueError(
                f"row has {len(cells)} cells but the table has {len(self.headers)} columns"
            )
        self.rows.append(cells)

    def _cell_lines(self, cell: str) -> list[str]:
        lines = cell.split("\n")
        if not self.wrap:
            return lines
        wrapped: list[str] = []
        for line in lines:
            if "\x1b" in line or _display_width(line) <= self.wrap_width:
                wrapped.append(line)
            else:
                wrapped.extend(textwrap.wrap(line, self.wrap_width) or [""])
        return wrapped

    def _format_line(self, cells: Sequence[str], widths: Sequence[int]) -> str:
        inner = self.column.join(f" {_pad(cell, width)} " for cell, width in zip(cells, widths))
        return f"{self.column}{inner}{self.column}"

    def _format_row(self, cells: Sequence[list[str]], widths: Sequence[int]) -> list[str]:
        height = max((len(lines) for lines in cells), default=1)
        return [
            self._format_line(
                [lines[index] if index < len(lines) else "" for lines in cells], widths
            )
            for index in range(height)
        ]

    def render(self) -> str:
        """Return the table as text ending in a newline."""
        body = [[self._cell_lines(cell) for cell in row] for row in self.rows]
        widths = [_display_width(header) for header in self.headers]
        for row in body:
            for position, lines in enumerate(row):
                widths[position] = max(
                    widths[position], max((_display_width(line) for line in lines), default=0)
                )

        headers = self.headers
        if self.header_styles is not None:
            headers = [
                colorize(header, style) for header, style in zip(headers, self.header_styles)
            ]

        separator = self.center + self.center.join(
            self.row_separator * (width + 2) for width in widths
        ) + self.center

        lines = [separator]
        lines.extend(self._format_row([[header] for header in headers], widths))
        lines.append(separator)
        for row in body:
            lines.extend(self._format_row(row, widths))
        lines.append(separator)
        return "\n".join(lines) + "\n"


def current_severity_label(severity: str) -> str:
    """Severity with its marker for an advisory affecting the checked version."""
    marker, label, style = _CURRENT_SEVERITY.get(severity.lower(), ("🟢 ", "Low", "green"))
    return marker + colorize(label, style)


def fixed_severity_label(severity: str) -> str:
    """Severity coloured by level; unknown levels are returned unchanged."""
    style = _FIXED_SEVERITY_STYLES.get(severity)
    return colorize(severity, style) if style else severity


def highest_fixed_version(analysis: PackageAnalysis) -> str:
    """The lowest version that fixes every advisory affecting the current version."""
    patched = analysis.current
    for vuln in analysis.cves.current:
        if compare_versions(vuln.fixed_in, patched) > 0:
            patched = vuln.fixed_in
    return patched


def _advisory_link(vuln: CVEDetails) -> str:
    if vuln.id.startswith("GHSA-"):
        return f"https://github.com/advisories/{vuln.id}"
    if vuln.id.startswith("CVE-"):
        return f"https://nvd.nist.gov/vuln/detail/{vuln.id}"
    return vuln.url


def _references(vuln: CVEDetails) -> str:
    refs = []
    if vuln.id.startswith("CVE-"):
        refs.append(f"NVD: https://nvd.nist.gov/vuln/detail/{vuln.id}")
    if vuln.id.startswith("GHSA-"):
        refs.append(f"GitHub: https://github.com/advisories/{vuln.id}")
    if vuln.url:
        refs.append(f"Additional: {vuln.url}")
    return "\n".join(colorize(ref, "blue") for ref in refs)


def _summary_table() -> Table:
    return Table(_SUMMARY_HEADERS)


def _summary_row(
    analysis: PackageAnalysis, patched: str, security: str, recommendation: str
) -> list[str]:
    breaking = colorize("Yes", "red") if analysis.has_breaking_changes else "No"
    return [
        colorize(analysis.name, "cyan"),
        analysis.current,
        colorize(analysis.latest, "green"),
        colorize(patched, "yellow"),
        breaking,
        security,
        recommendation,
    ]


def _security_status(analysis: PackageAnalysis) -> str:
    count = len(analysis.cves.current)
    if count:
        return colorize(f"⚠ {count} active CVEs", "red")
    return colorize("✓ Secure", "green")


def _advisory_section(analysis: PackageAnalysis, action: str, target: str) -> str:
    table = Table(_ADVISORY_HEADERS)
    for vuln in analysis.cves.current:
        source = "🛡️ osv.dev" if vuln.source == "osv.dev" else "🔍 deps.dev"
        table.add_row(
            [
                colorize(vuln.id, "cyan"),
                current_severity_label(vuln.severity),
                colorize(vuln.fixed_in, "yellow"),
                source,
                colorize(_advisory_link(vuln), "blue"),
            ]
        )
    parts = [
        f"🔒 Security Analysis for {colorize(analysis.name, 'cyan')}\n",
        "═══════════════════════════\n",
        table.render(),
        f"\n📝 {colorize('Recommendation', 'hiwhite')}\n",
        f"   {colorize(action, 'yellow')} to version {colorize(target, 'green')} "
        f"to fix {len(analysis.cves.current)} vulnerabilities\n",
        "\n",
    ]
    return "".join(parts)


def _detail_section(title: str, vulns: Sequence[CVEDetails]) -> str:
    table = Table(
        _DETAIL_HEADERS,
        header_styles=_DETAIL_HEADER_STYLES,
        wrap=True,
        center="─",
    )
    for vuln in vulns:
        table.add_row(
            [
                colorize(vuln.id, "cyan"),
                fixed_severity_label(vuln.severity),
                f"{vuln.score:.1f}",
                vuln.description,
                colorize(vuln.fixed_in, "yellow"),
                _references(vuln),
            ]
        )
    return f"{colorize(title, 'hiwhite')}\n{table.render()}\n"


def render_check(analysis: PackageAnalysis) -> str:
    """Full report for a single checked package version."""
    parts = [
        f"📦 Fetching package info for {colorize(analysis.name, 'cyan')}...\n",
        f"🔍 Checking vulnerabilities in version {colorize(analysis.current, 'yellow')}...\n",
        "\n",
    ]

    patched = analysis.current
    recommendation = "Up to date"
    if analysis.cves.current:
        patched = highest_fixed_version(analysis)
        if analysis.has_breaking_changes:
            recommendation = colorize(
                f"Review changelog before upgrading to {patched}", "yellow"
            )
        else:
            recommendation = colorize(f"Upgrade to {patched}", "yellow")
    elif analysis.has_breaking_changes:
        recommendation = colorize("Review changelog before upgrading", "yellow")
    elif analysis.current != analysis.latest:
        recommendation = colorize("Safe to upgrade", "green")

    table = _summary_table()
    table.add_row(_summary_row(analysis, patched, _security_status(analysis), recommendation))
    parts.append(table.render())
    parts.append("\n")

    if analysis.cves.current:
        action = "Review changelog and upgrade" if analysis.has_breaking_changes else "Upgrade"
        parts.append(_advisory_section(analysis, action, patched))
    if analysis.cves.fixed:
        parts.append(
            _detail_section("Vulnerabilities Fixed in Newer Versions", analysis.cves.fixed)
        )
    if analysis.cves.new:
        parts.append(_detail_section("New Vulnerabilities in Latest Version", analysis.cves.new))
    return "".join(parts)


def render_file(analyses: Sequence[PackageAnalysis]) -> str:
    """Report covering every dependency analysed from a package file."""
    parts = ["\n📊 Analysis Results\n", "══════════════════\n"]

    table = _summary_table()
    for analysis in analyses:
        recommendation = "Up to date"
        if analysis.cves.current:
            recommendation = colorize("Upgrade recommended", "yellow")
        table.add_row(
            _summary_row(analysis, analysis.patched, _security_status(analysis), recommendation)
        )
    parts.append(table.render())
    parts.append("\n")

    for analysis in analyses:
        if analysis.cves.current:
            parts.append(_advisory_section(analysis, "Upgrade", analysis.patched))
    return "".join(parts)