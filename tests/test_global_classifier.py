"""Tests for the globals catalog and the restricted-name set."""

import json

import pytest

from ssrguard.analyzer.globals_catalog import GlobalCatalog, get_catalog, restricted_globals


@pytest.fixture
def catalog():
    return get_catalog()


class TestBundledCatalog:
    """The catalog shipped with the package."""

    def test_browser_only_names_are_restricted(self, catalog):
        restricted = restricted_globals(catalog)
        for name in ('window', 'document', 'location', 'localStorage', 'history', 'requestAnimationFrame'):
            assert name in restricted, f"{name} should be browser-only"

    def test_names_shared_with_server_are_not_restricted(self, catalog):
        restricted = restricted_globals(catalog)
        for name in ('setTimeout', 'setInterval', 'console', 'URL', 'fetch', 'TextEncoder'):
            assert name in catalog.browser
            assert name not in restricted, f"{name} exists on the server too"

    def test_server_only_names_are_not_restricted(self, catalog):
        restricted = restricted_globals(catalog)
        assert 'process' not in restricted
        assert 'Buffer' not in restricted

    def test_singleton(self):
        assert get_catalog() is get_catalog()


class TestRestrictedGlobals:
    """RestrictedSet = browser - server - allowed."""

    def test_set_difference(self):
        catalog = GlobalCatalog(
            browser=frozenset({'window', 'fetch', 'screen'}),
            server=frozenset({'fetch', 'process'}),
        )
        assert restricted_globals(catalog) == frozenset({'window', 'screen'})

    def test_allowed_globals_are_removed(self, catalog):
        restricted = restricted_globals(catalog, ['location', 'history'])
        assert 'location' not in restricted
        assert 'history' not in restricted
        assert 'window' in restricted

    def test_order_independent(self, catalog):
        assert restricted_globals(catalog, ['a', 'location']) == restricted_globals(catalog, ['location', 'a'])

    def test_result_is_immutable(self, catalog):
        assert isinstance(restricted_globals(catalog), frozenset)


class TestCatalogFile:
    """Loading catalogs from JSON."""

    def test_from_file(self, tmp_path):
        catalog_file = tmp_path / 'globals.json'
        catalog_file.write_text(json.dumps({'browser': ['window', 'fetch'], 'node': ['fetch']}))

        catalog = GlobalCatalog.from_file(catalog_file)

        assert catalog.browser == frozenset({'window', 'fetch'})
        assert catalog.server == frozenset({'fetch'})

    def test_missing_environment_is_rejected(self, tmp_path):
        catalog_file = tmp_path / 'globals.json'
        catalog_file.write_text(json.dumps({'browser': ['window']}))

        with pytest.raises(ValueError, match="'node'"):
            GlobalCatalog.from_file(catalog_file)

    def test_non_string_names_are_rejected(self, tmp_path):
        catalog_file = tmp_path / 'globals.json'
        catalog_file.write_text(json.dumps({'browser': ['window', 1], 'node': []}))

        with pytest.raises(ValueError):
            GlobalCatalog.from_file(catalog_file)
