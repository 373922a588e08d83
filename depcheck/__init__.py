"""Check npm package versions for updates, breaking changes and known vulnerabilities."""

__version__ = "0.1.0"