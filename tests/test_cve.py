from datetime import datetime, timezone

import pytest
import responses
from responses import matchers

from depcheck.cve import (
    OSV_QUERY_URL,
    CVEDetails,
    CVEInfo,
    fetch_cves,
    fetch_deps_dev_vulns,
    fetch_osv_vulns,
    is_version_in_range,
    parse_score,
    severity_for_score,
)

DEPS_URL = "https://api.deps.dev/v3/systems/npm/packages/express/versions/4.17.1"


def _advisory(adv_id, fixed_in="", score=0.0, aliases=None):
    return {
        "advisory": {
            "id": adv_id,
            "url": f"https://example.com/{adv_id}",
            "summary": f"summary of {adv_id}",
            "aliases": aliases or [],
            "fixedIn": fixed_in,
            "cvss": {"score": score, "vector": ""},
        }
    }


@pytest.mark.parametrize(
    "score,label",
    [(9.0, "Critical"), (10.0, "Critical"), (7.0, "High"), (4.0, "Medium"), (0.0, "Low")],
)
def test_severity_for_score(score, label):
    assert severity_for_score(score) == label


@pytest.mark.parametrize(
    "label,score", [("CRITICAL", 9.0), ("HIGH", 7.0), ("MEDIUM", 4.0), ("LOW", 1.0)]
)
def test_parse_score_known_labels(label, score):
    assert parse_score(label) == score


def test_parse_score_unknown_raises():
    with pytest.raises(ValueError, match="unknown severity"):
        parse_score("high")


def test_is_version_in_range():
    assert is_version_in_range("1.5.0", "1.0.0", "2.0.0") is True
    assert is_version_in_range("2.0.0", "1.0.0", "2.0.0") is False
    assert is_version_in_range("0.9.0", "1.0.0", "2.0.0") is False
    assert is_version_in_range("0.1.0", "", "") is True
    assert is_version_in_range("bogus", "1.0.0", "2.0.0") is False
    assert is_version_in_range("1.0.0", "1.0.0", "bogus") is False


def test_is_known_matches_id_and_alias():
    info = CVEInfo(current=[CVEDetails(id="GHSA-aaaa", aliases=["CVE-2020-1"])])
    assert info.is_known("current", "GHSA-aaaa")
    assert info.is_known("current", "CVE-2020-1")
    assert not info.is_known("fixed", "GHSA-aaaa")
    with pytest.raises(ValueError):
        info.is_known("other", "GHSA-aaaa")


def test_deps_dev_sorts_advisories_into_buckets():
    body = {
        "version": {
            "advisories": [
                _advisory("GHSA-one", "4.17.3", 9.8),
                _advisory("GHSA-two", "4.0.0", 5.0),
                _advisory("GHSA-three", "", 7.5),
                _advisory("GHSA-four", "not-a-version", 3.0),
            ]
        }
    }
    info = CVEInfo()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, DEPS_URL, json=body)
        fetch_deps_dev_vulns("express", "4.17.1", info)
    assert [v.id for v in info.current] == ["GHSA-one", "GHSA-three"]
    assert [v.id for v in info.fixed] == ["GHSA-two"]
    first = info.current[0]
    assert first.severity == "Critical"
    assert first.source == "deps.dev"
    assert first.fixed_in == "4.17.3"


def test_deps_dev_not_found_adds_nothing():
    info = CVEInfo()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, DEPS_URL, status=404, body="missing")
        fetch_deps_dev_vulns("express", "4.17.1", info)
    assert info == CVEInfo()


def test_deps_dev_escapes_scoped_name():
    url = "https://api.deps.dev/v3/systems/npm/packages/@scope%2Fpkg/versions/1.0.0"
    info = CVEInfo()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, json={"version": {"advisories": [_advisory("GHSA-x")]}})
        fetch_deps_dev_vulns("@scope/pkg", "1.0.0", info)
    assert [v.id for v in info.current] == ["GHSA-x"]


def test_deps_dev_invalid_current_version_adds_nothing():
    url = "https://api.deps.dev/v3/systems/npm/packages/express/versions/latest"
    info = CVEInfo()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, json={"version": {"advisories": [_advisory("GHSA-x")]}})
        fetch_deps_dev_vulns("express", "latest", info)
    assert info.current == [] and info.fixed == []


def test_osv_parses_and_deduplicates():
    body = {
        "vulns": [
            {
                "id": "CVE-2022-24999",
                "summary": "duplicate via alias",
                "affected": [{"ranges": [{"events": [{"introduced": "0"}, {"fixed": "4.17.3"}]}]}],
            },
            {
                "id": "GHSA-new",
                "summary": "fresh one",
                "details": "long text",
                "published": "2021-05-06T12:30:00Z",
                "severity": [{"type": "CVSS_V3", "score": "HIGH"}],
                "affected": [{"ranges": [{"events": [{"introduced": "0"}, {"fixed": "5.0.0"}]}]}],
                "references": [
                    {"type": "WEB", "url": "https://example.com/web"},
                    {"type": "ADVISORY", "url": "https://example.com/advisory"},
                ],
            },
            {
                "id": "GHSA-old",
                "affected": [{"ranges": [{"events": [{"fixed": "3.0.0"}]}]}],
            },
        ]
    }
    info = CVEInfo(current=[CVEDetails(id="GHSA-one", aliases=["CVE-2022-24999"])])
    expected_query = {"package": {"name": "express", "ecosystem": "npm"}, "version": "4.17.1"}
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.POST,
            OSV_QUERY_URL,
            json=body,
            match=[matchers.json_params_matcher(expected_query)],
        )
        fetch_osv_vulns("express", "4.17.1", info)

    assert [v.id for v in info.current] == ["GHSA-one", "GHSA-new"]
    assert [v.id for v in info.fixed] == ["GHSA-old"]
    fresh = info.current[1]
    assert fresh.score == 7.0
    assert fresh.severity == "High"
    assert fresh.url == "https://example.com/advisory"
    assert fresh.fixed_in == "5.0.0"
    assert fresh.details == "long text"
    assert fresh.source == "osv.dev"
    assert fresh.published == datetime(2021, 5, 6, 12, 30, tzinfo=timezone.utc)
    assert info.fixed[0].severity == ""


def test_osv_numeric_score_and_no_fix():
    body = {"vulns": [{"id": "GHSA-num", "severity": [{"type": "X", "score": 9.5}]}]}
    info = CVEInfo()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, OSV_QUERY_URL, json=body)
        fetch_osv_vulns("express", "4.17.1", info)
    assert len(info.current) == 1
    assert info.current[0].score == 9.5
    assert info.current[0].severity == "Critical"


def test_fetch_cves_survives_failing_source(capsys):
    osv_body = {"vulns": [{"id": "GHSA-only"}]}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, DEPS_URL, status=500, body="oops")
        rsps.add(responses.POST, OSV_QUERY_URL, json=osv_body)
        info = fetch_cves("express", "4.17.1", "5.0.0")
    out = capsys.readouterr().out
    assert "deps.dev check failed" in out
    assert "Checking OSV.dev for express@4.17.1" in out
    assert [v.id for v in info.current] == ["GHSA-only"]
    assert info.new == []


def test_fetch_cves_network_error_reported(capsys):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, DEPS_URL, json={"version": {"advisories": [_advisory("GHSA-a", "5.0.0")]}})
        info = fetch_cves("express", "4.17.1", "5.0.0")
    out = capsys.readouterr().out
    assert "OSV.dev check failed" in out
    assert [v.id for v in info.current] == ["GHSA-a"]