"""Version analysis of npm packages against the public registry."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import IO, Any

import requests

from depcheck.cve import REQUEST_TIMEOUT, CVEInfo, fetch_cves
from depcheck.semantic import InvalidVersionError, parse_version

__all__ = [
    "AnalysisError",
    "PackageAnalysis",
    "analyze_package",
    "analyze_package_file",
    "get_latest_version",
    "analyze_dependency",
]

NPM_REGISTRY_URL = "https://registry.npmjs.org/{name}"

_JSON_WHITESPACE = " \t\n\r"


class AnalysisError(Exception):
    """Raised when a package or package file cannot be analysed."""


@dataclass
class PackageAnalysis:
    """The outcome of checking one package version."""

    name: str
    current: str
    latest: str
    patched: str
    has_breaking_changes: bool
    cves: CVEInfo = field(default_factory=CVEInfo)


def _fetch_registry_document(name: str) -> dict[str, Any]:
    try:
        response = requests.get(NPM_REGISTRY_URL.format(name=name), timeout=REQUEST_TIMEOUT)
    except requests.RequestException as err:
        raise AnalysisError(f"failed to fetch package info: {err}") from err
    try:
        data = response.json()
    except ValueError as err:
        raise AnalysisError(f"failed to decode package info: {err}") from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise AnalysisError("failed to decode package info: expected a JSON object")
    return data


def _latest_tag(document: dict[str, Any]) -> str:
    tags = document.get("dist-tags")
    if tags is None:
        return ""
    if not isinstance(tags, dict):
        raise AnalysisError("failed to decode package info: dist-tags is not an object")
    latest = tags.get("latest")
    if latest is None:
        return ""
    if not isinstance(latest, str):
        raise AnalysisError("failed to decode package info: latest tag is not a string")
    return latest


def _published_versions(document: dict[str, Any]) -> list[str]:
    versions = document.get("versions")
    if versions is None:
        return []
    if not isinstance(versions, dict):
        raise AnalysisError("failed to decode package info: versions is not an object")
    return list(versions)


def analyze_package(name: str, version: str) -> PackageAnalysis:
    """Check *version* of the npm package *name* for updates and advisories."""
    document = _fetch_registry_document(name)
    latest = _latest_tag(document)
    published = _published_versions(document)

    try:
        current = parse_version(version)
    except InvalidVersionError as err:
        raise AnalysisError(f"invalid version format: {err}") from err
    try:
        latest_version = parse_version(latest)
    except InvalidVersionError as err:
        raise AnalysisError(f"invalid latest version format: {err}") from err

    patched = version
    best = None
    for candidate in published:
        try:
            parsed = parse_version(candidate)
        except InvalidVersionError:
            continue
        if parsed.major == current.major and parsed > current and (best is None or parsed > best):
            best, patched = parsed, candidate

    return PackageAnalysis(
        name=name,
        current=version,
        latest=latest,
        patched=patched,
        has_breaking_changes=latest_version.major > current.major,
        cves=fetch_cves(name, version, latest),
    )


def _dependency_section(document: dict[str, Any], key: str) -> dict[str, str]:
    section = document.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict) or not all(isinstance(v, str) for v in section.values()):
        raise AnalysisError(f"failed to parse package.json: {key} must map names to strings")
    return section


def analyze_package_file(file: IO[Any]) -> list[PackageAnalysis]:
    """Analyse every dependency and devDependency listed in a package.json stream."""
    content = file.read()
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    try:
        document, _ = json.JSONDecoder().raw_decode(content.lstrip(_JSON_WHITESPACE))
    except json.JSONDecodeError as err:
        raise AnalysisError(f"failed to parse package.json: {err}") from err
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise AnalysisError("failed to parse package.json: expected a JSON object")

    sections = [
        _dependency_section(document, "dependencies"),
        _dependency_section(document, "devDependencies"),
    ]

    analyses = []
    for section in sections:
        for name, version in section.items():
            try:
                analyses.append(analyze_dependency(name, version))
            except AnalysisError as err:
                print(f"Warning: failed to analyze {name}: {err}")
    return analyses


def get_latest_version(name: str) -> str:
    """Return the version the registry tags as latest for *name*."""
    return _latest_tag(_fetch_registry_document(name))


def analyze_dependency(name: str, version: str) -> PackageAnalysis:
    """Analyse one dependency whose version may carry a ``^`` or ``~`` range prefix."""
    version = version.removeprefix("^").removeprefix("~")

    try:
        latest = get_latest_version(name)
    except AnalysisError as err:
        raise AnalysisError(f"failed to get latest version: {err}") from err

    try:
        current = parse_version(version)
    except InvalidVersionError as err:
        raise AnalysisError(f"failed to parse current version: {err}") from err
    try:
        latest_version = parse_version(latest)
    except InvalidVersionError as err:
        raise AnalysisError(f"failed to parse latest version: {err}") from err

    breaking = current.major != latest_version.major
    patched = latest
    if breaking:
        patched = f"{current.major}.{latest_version.minor}.{latest_version.patch}"

    return PackageAnalysis(
        name=name,
        current=version,
        latest=latest,
        patched=patched,
        has_breaking_changes=breaking,
        cves=fetch_cves(name, version, latest),
    )