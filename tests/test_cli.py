import json

import pytest
import responses

from depcheck.cli import build_parser, main

REGISTRY = "https://registry.npmjs.org/express"
DEPS_DEV = "https://api.deps.dev/v3/systems/npm/packages/express/versions/4.17.1"
OSV = "https://api.osv.dev/v1/query"


@pytest.fixture(autouse=True)
def _no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")


def _mock_services(rsps):
    rsps.add(
        responses.GET,
        REGISTRY,
        json={"dist-tags": {"latest": "4.17.1"}, "versions": {"4.17.1": {}}},
    )
    rsps.add(responses.GET, DEPS_DEV, status=404)
    rsps.add(responses.POST, OSV, json={})


def test_parser_has_program_name_and_commands():
    parser = build_parser()
    assert parser.prog == "depcheck"
    args = parser.parse_args(["check", "express", "4.17.1"])
    assert (args.command, args.package, args.version) == ("check", "express", "4.17.1")
    assert parser.parse_args(["file", "package.json"]).path == "package.json"


def test_check_requires_two_arguments():
    with pytest.raises(SystemExit):
        main(["check", "express"])


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "depcheck" in capsys.readouterr().out


def test_check_reports_package(capsys):
    with responses.RequestsMock() as rsps:
        _mock_services(rsps)
        status = main(["check", "express", "4.17.1"])
    out = capsys.readouterr().out
    assert status == 0
    assert "Fetching package info for express" in out
    assert "Up to date" in out
    assert "✓ Secure" in out


def test_check_invalid_version_fails(capsys):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, REGISTRY, json={"dist-tags": {"latest": "4.17.1"}})
        status = main(["check", "express", "not-a-version"])
    assert status == 1
    assert capsys.readouterr().err.startswith("Error: failed to analyze package:")


def test_file_reports_dependencies(tmp_path, capsys):
    manifest = tmp_path / "package.json"
    manifest.write_text(json.dumps({"dependencies": {"express": "^4.17.1"}}), encoding="utf-8")
    with responses.RequestsMock() as rsps:
        _mock_services(rsps)
        status = main(["file", str(manifest)])
    out = capsys.readouterr().out
    assert status == 0
    assert f"Reading dependencies from {manifest}" in out
    assert "Analysis Results" in out
    assert "express" in out
    assert "Up to date" in out


def test_file_missing_fails(tmp_path, capsys):
    missing = tmp_path / "absent.json"
    assert main(["file", str(missing)]) == 1
    assert f"Error: failed to open file {missing}" in capsys.readouterr().err


def test_file_invalid_json_fails(tmp_path, capsys):
    manifest = tmp_path / "package.json"
    manifest.write_text("{ not json", encoding="utf-8")
    assert main(["file", str(manifest)]) == 1
    assert "Error: failed to analyze package file:" in capsys.readouterr().err