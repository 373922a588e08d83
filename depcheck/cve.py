"""Vulnerability lookup against the deps.dev and OSV.dev services."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import requests

from depcheck.semantic import InvalidVersionError, parse_version

__all__ = [
    "CVEDetails",
    "CVEInfo",
    "severity_for_score",
    "parse_score",
    "is_version_in_range",
    "fetch_deps_dev_vulns",
    "fetch_osv_vulns",
    "fetch_cves",
]

DEPS_DEV_VERSION_URL = "https://api.deps.dev/v3/systems/npm/packages/{name}/versions/{version}"
OSV_QUERY_URL = "https://api.osv.dev/v1/query"
REQUEST_TIMEOUT = 30.0

_SCORE_BY_LABEL = {"CRITICAL": 9.0, "HIGH": 7.0, "MEDIUM": 4.0, "LOW": 1.0}

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


@dataclass
class CVEDetails:
    """One advisory affecting a package."""

    id: str
    description: str = ""
    severity: str = ""
    score: float = 0.0
    published: datetime | None = None
    fixed_in: str = ""
    url: str = ""
    details: str = ""
    aliases: list[str] = field(default_factory=list)
    source: str = ""


@dataclass
class CVEInfo:
    """Advisories grouped by how they relate to the checked version."""

    current: list[CVEDetails] = field(default_factory=list)
    fixed: list[CVEDetails] = field(default_factory=list)
    new: list[CVEDetails] = field(default_factory=list)

    def is_known(self, bucket: str, vuln_id: str) -> bool:
        """Whether the named bucket already holds *vuln_id* as an ID or alias."""
        if bucket not in ("current", "fixed", "new"):
            raise ValueError(f"unknown bucket: {bucket!r}")
        return any(
            existing.id == vuln_id or vuln_id in existing.aliases
            for existing in getattr(self, bucket)
        )


def severity_for_score(score: float) -> str:
    """Map a CVSS score to a severity label."""
    if score >= 9.0:
        return "Critical"
    if score >= 7.0:
        return "High"
    if score >= 4.0:
        return "Medium"
    return "Low"


def parse_score(score: str) -> float:
    """Turn a severity label such as ``HIGH`` into a representative score."""
    try:
        return _SCORE_BY_LABEL[score]
    except KeyError:
        raise ValueError(f"unknown severity: {score}") from None


def is_version_in_range(version: str, introduced: str, fixed: str) -> bool:
    """Whether *version* lies in ``[introduced, fixed)``; open-ended if *fixed* is empty."""
    try:
        current = parse_version(version)
        start = parse_version(introduced or "0.0.0")
        if not fixed:
            return current >= start
        end = parse_version(fixed)
    except InvalidVersionError:
        return False
    return start <= current < end


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> list:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _parse_timestamp(text: str) -> datetime | None:
    match = _RFC3339_RE.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            return None
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second),
            microsecond, tzinfo=tz,
        )
    except ValueError:
        return None


def fetch_deps_dev_vulns(package_name: str, current_version: str, info: CVEInfo) -> None:
    """Add advisories reported by deps.dev for the given npm package version to *info*."""
    url = DEPS_DEV_VERSION_URL.format(
        name=quote(package_name, safe="$&+=:@"),
        version=quote(current_version, safe="$&+=:@"),
    )
    response = requests.get(url, timeout=REQUEST_TIMEOUT)
    if response.status_code == 404:
        return
    data = response.json()

    try:
        current = parse_version(current_version)
    except InvalidVersionError:
        return

    advisories = _items(_mapping(_mapping(data).get("version")).get("advisories"))
    for entry in advisories:
        advisory = _mapping(_mapping(entry).get("advisory"))
        score = _number(_mapping(advisory.get("cvss")).get("score"))
        fixed_in = _text(advisory.get("fixedIn"))
        details = CVEDetails(
            id=_text(advisory.get("id")),
            description=_text(advisory.get("summary")),
            severity=severity_for_score(score),
            score=score,
            fixed_in=fixed_in,
            url=_text(advisory.get("url")),
            aliases=[alias for alias in _items(advisory.get("aliases")) if isinstance(alias, str)],
            source="deps.dev",
        )
        if not fixed_in:
            info.current.append(details)
            continue
        try:
            fixed = parse_version(fixed_in)
        except InvalidVersionError:
            continue
        (info.current if current < fixed else info.fixed).append(details)


def _osv_score(severities: list) -> float:
    raw = _mapping(severities[0]).get("score")
    if isinstance(raw, str):
        try:
            return parse_score(raw)
        except ValueError:
            return 0.0
    return _number(raw)


def fetch_osv_vulns(package_name: str, current_version: str, info: CVEInfo) -> None:
    """Add vulnerabilities reported by OSV.dev to *info*, skipping ones already present."""
    query = {
        "package": {"name": package_name, "ecosystem": "npm"},
        "version": current_version,
    }
    response = requests.post(OSV_QUERY_URL, json=query, timeout=REQUEST_TIMEOUT)
    data = response.json()

    for raw in _items(_mapping(data).get("vulns")):
        vuln = _mapping(raw)
        details = CVEDetails(
            id=_text(vuln.get("id")),
            description=_text(vuln.get("summary")),
            details=_text(vuln.get("details")),
            source="osv.dev",
        )

        severities = _items(vuln.get("severity"))
        if severities:
            details.score = _osv_score(severities)
            details.severity = severity_for_score(details.score)

        affected = _items(vuln.get("affected"))
        if affected:
            ranges = _items(_mapping(affected[0]).get("ranges"))
            if ranges:
                events = _items(_mapping(ranges[0]).get("events"))
                details.fixed_in = next(
                    (_text(_mapping(e).get("fixed")) for e in events if _text(_mapping(e).get("fixed"))),
                    "",
                )

        details.url = next(
            (
                _text(_mapping(ref).get("url"))
                for ref in _items(vuln.get("references"))
                if _mapping(ref).get("type") == "ADVISORY"
            ),
            "",
        )

        published = _text(vuln.get("published"))
        if published:
            details.published = _parse_timestamp(published)

        try:
            current = parse_version(current_version)
        except InvalidVersionError:
            continue

        bucket = "current"
        if details.fixed_in:
            try:
                fixed = parse_version(details.fixed_in)
            except InvalidVersionError:
                continue
            if not current < fixed:
                bucket = "fixed"

        if not info.is_known(bucket, details.id):
            getattr(info, bucket).append(details)


def fetch_cves(package_name: str, current_version: str, latest_version: str) -> CVEInfo:
    """Collect advisories from deps.dev and OSV.dev; failures of either are reported and skipped."""
    info = CVEInfo()

    print(f"🔍 Checking deps.dev for {package_name}@{current_version}...")
    try:
        fetch_deps_dev_vulns(package_name, current_version, info)
    except (requests.RequestException, ValueError) as err:
        print(f"⚠️  Warning: deps.dev check failed: {err}")

    print(f"🔍 Checking OSV.dev for {package_name}@{current_version}...")
    try:
        fetch_osv_vulns(package_name, current_version, info)
    except (requests.RequestException, ValueError) as err:
        print(f"⚠️  Warning: OSV.dev check failed: {err}")

    return info