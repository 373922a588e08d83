# depcheck

A command-line tool that checks npm package versions against the npm
registry and looks up known vulnerabilities from deps.dev and OSV.dev.

For each package it reports the current and latest published versions,
a patched version to move to, whether upgrading crosses a major version
(breaking changes), the advisories affecting the current version, and a
recommendation.

## Installation

```
pip install .
```

Running the tests needs the `test` extra:

```
pip install ".[test]"
pytest
```

## Usage

Check a single package version:

```
depcheck check express 4.17.1
```

The report shows a summary table and, when advisories affect the given
version, a table of those advisories with their severity, fixed version,
source (deps.dev or OSV.dev) and a link. The patched version shown is the
highest "fixed in" version among the active advisories. Advisories that
are already fixed in the checked version are listed in a separate table.

Check every `dependencies` and `devDependencies` entry in a
`package.json`:

```
depcheck file package.json
```

Version prefixes `^` and `~` are stripped before the lookup. Packages
that cannot be analysed are reported as warnings and skipped; the rest
are shown in one table, followed by a security analysis for each package
with active advisories. Here the patched version is the latest version
when it shares the current major version; otherwise it is formed from
the current major and the latest version's minor and patch numbers.

Running `depcheck` with no command prints the help. When a command
fails, the message is printed to standard error as `Error: ...` and the
exit status is 1.

Output is coloured only when standard output is a terminal, `NO_COLOR`
is unset or empty, and `TERM` is not `dumb`.

## Using it from Python

```python
from depcheck.analysis import analyze_package
from depcheck.report import render_check

analysis = analyze_package("express", "4.17.1")
print(render_check(analysis), end="")
```

- `depcheck.analysis`: `analyze_package`, `analyze_package_file`,
  `analyze_dependency` and `get_latest_version` return
  `PackageAnalysis` results and raise `AnalysisError` on failure.
- `depcheck.cve`: `fetch_cves` gathers advisories into a `CVEInfo` with
  `current`, `fixed` and `new` lists of `CVEDetails`; a failed lookup
  is printed as a warning and does not stop the analysis.
  `severity_for_score`, `parse_score` and `is_version_in_range` are
  available on their own.
- `depcheck.semantic`: `parse_version` returns an ordered `Version` or
  raises `InvalidVersionError`; `compare_versions` compares two dotted
  version strings and returns -1, 0 or 1.
- `depcheck.report`: `render_check` and `render_file` return the report
  text; `Table` renders bordered text tables.
- `depcheck.display`: `display_vulnerabilities` prints a plain listing
  of advisories, and `colorize` applies terminal colours.

The analysis functions need network access to `registry.npmjs.org`,
`api.deps.dev` and `api.osv.dev`, and print progress lines while they
work.

## What it does not do

- Only npm packages are looked up. The `file` command reads
  `package.json` only; other manifests such as `requirements.txt` are
  not understood, despite the help text mentioning them.
- The `new` list of `CVEInfo` is never filled by the lookups, so the
  "New Vulnerabilities in Latest Version" section does not appear in
  practice.
- Nothing is cached or stored; every run queries the services again.