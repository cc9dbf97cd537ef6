"""Shared fixtures for the ssr-guard test-suite."""

import pytest

from ssrguard.analyzer.checker import SSRGlobalsChecker
from ssrguard.analyzer.options import parse_options


def _flagged(code: str, filename: str = 'test.jsx', **options) -> list:
    checker = SSRGlobalsChecker(parse_options(options))
    return [finding.name for finding in checker.check_source(code, filename)]


@pytest.fixture
def flagged():
    """Names reported for a snippet, in report order.

    Keyword arguments are rule options in camelCase, as a user would write them:
    ``flagged(code, 'App.tsx', conditionCheck=False)``.
    """
    return _flagged


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep CLI defaults independent of the developer's shell and cwd."""
    monkeypatch.delenv('SSRGUARD_OPTIONS', raising=False)
    monkeypatch.delenv('SSRGUARD_SEVERITY', raising=False)
    monkeypatch.chdir(tmp_path)
