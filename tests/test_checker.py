"""End-to-end tests for SSRGlobalsChecker on single files."""

import pytest

from ssrguard.analyzer.checker import RULE_META, SSRGlobalsChecker
from ssrguard.analyzer.globals_catalog import GlobalCatalog
from ssrguard.analyzer.parser import UnparsableSourceError


@pytest.fixture
def checker():
    return SSRGlobalsChecker()


class TestDefaultScenarios:
    """Behaviour under the default options."""

    def test_bare_global(self, flagged):
        assert flagged("const host = location.host;") == ['location']

    def test_shadowed(self, flagged):
        assert flagged("const location = 'localhost'; const host = location.host;") == []

    def test_allowed_hook(self, flagged):
        assert flagged("useEffect(() => { const v = location.host; }, []);") == []

    def test_lowercase_handler(self, flagged):
        assert flagged("<button onclick={() => { const v = location.host; }} />") == ['location']

    def test_event_handler(self, flagged):
        assert flagged("<button onClick={() => { const v = location.host; }} />") == []

    def test_client_annotation(self, flagged):
        assert flagged("// @client\nconst host = location.host;") == []

    def test_server_globals_are_ignored(self, flagged):
        assert flagged("const env = process.env; setTimeout(() => {}, 0); console.log(env);") == []

    def test_allowed_globals(self, flagged):
        code = "const host = location.host; const title = document.title;"
        assert flagged(code, allowedGlobals=['location']) == ['document']


class TestFileFilter:
    """Only .jsx and .tsx files are analysed."""

    CODE = "const host = location.host;"

    @pytest.mark.parametrize('filename', ['app.js', 'app.ts', 'app.mjs', 'App.jsx.bak', 'README.md'])
    def test_other_extensions_yield_nothing(self, flagged, filename):
        assert flagged(self.CODE, filename) == []

    @pytest.mark.parametrize('filename', ['App.jsx', 'App.tsx', 'App.JSX', 'nested/dir/App.Tsx'])
    def test_markup_extensions(self, flagged, filename):
        assert flagged(self.CODE, filename) == ['location']

    @pytest.mark.parametrize('filename', ['.jsx', 'src/.jsx', 'src/.TSX'])
    def test_extension_without_stem(self, flagged, filename):
        assert flagged(self.CODE, filename) == ['location']

    def test_unparsable_other_extension_is_not_parsed(self, checker):
        assert checker.check_source("this is ) not javascript", 'notes.js') == []

    def test_missing_other_extension_is_not_read(self, checker, tmp_path):
        assert checker.check_file(tmp_path / 'missing.js') == []

    def test_missing_markup_file(self, checker, tmp_path):
        with pytest.raises(OSError):
            checker.check_file(tmp_path / 'missing.jsx')


class TestFindings:

    def test_position_is_one_based(self, checker):
        [finding] = checker.check_source("const host = location.host;", 'App.jsx')

        assert finding.name == 'location'
        assert finding.file_path == 'App.jsx'
        assert finding.line == 1
        assert finding.column == 14

    def test_document_order(self, checker):
        code = "const a = document.title;\nconst b = window.innerWidth;\nconst c = location.href;"
        findings = checker.check_source(code, 'App.jsx')

        assert [f.name for f in findings] == ['document', 'window', 'location']
        assert [(f.line, f.column) for f in findings] == [(1, 11), (2, 11), (3, 11)]

    def test_every_occurrence_is_reported(self, flagged):
        assert flagged("location.reload(); location.reload();") == ['location', 'location']

    def test_idempotent(self, checker):
        code = "const a = document.title;\nuseEffect(() => window.scrollTo(0, 0));"
        assert checker.check_source(code, 'App.jsx') == checker.check_source(code, 'App.jsx')

    def test_message(self, checker):
        [finding] = checker.check_source("const host = location.host;", 'App.jsx')

        assert finding.message.startswith("'location' is not allowed in a server-side context.")
        assert '// @client' in finding.message

    def test_to_dict(self, checker):
        [finding] = checker.check_source("const host = location.host;", 'App.jsx')

        assert finding.to_dict() == {
            'file': 'App.jsx',
            'line': 1,
            'column': 14,
            'name': 'location',
            'message': finding.message,
        }

    def test_check_file(self, checker, tmp_path):
        source = tmp_path / 'Page.jsx'
        source.write_text("export default function Page() {\n  return <p>{window.innerWidth}</p>;\n}\n")

        [finding] = checker.check_file(source)

        assert finding.name == 'window'
        assert finding.file_path == str(source)
        assert (finding.line, finding.column) == (2, 14)


class TestMarkup:
    """Tag and attribute names are markup, not variable reads."""

    def test_element_and_attribute_names(self, flagged):
        assert flagged('const el = <Image name="logo" />;') == []

    def test_closing_tag(self, flagged):
        assert flagged('const el = <Option status="on">label</Option>;') == []

    def test_expression_child_is_reported(self, flagged):
        assert flagged('const el = <div>{name}</div>;') == ['name']

    def test_attribute_value_is_reported(self, flagged):
        assert flagged('const el = <div title={document.title} />;') == ['document']

    def test_tsx_component(self, flagged):
        code = """
type Props = { location: string };
export const App = ({ location }: Props): JSX.Element => (
  <div className={location}>{window.innerWidth}</div>
);
"""
        assert flagged(code, 'App.tsx') == ['window']


class TestParseErrors:

    def test_syntax_error_is_raised(self, checker):
        with pytest.raises(UnparsableSourceError) as exc_info:
            checker.check_source("const = ;", 'Broken.jsx')

        assert exc_info.value.file_path == 'Broken.jsx'
        assert exc_info.value.line == 1
        assert str(exc_info.value).startswith('Broken.jsx:1:')

    def test_error_is_a_value_error(self, checker):
        with pytest.raises(ValueError):
            checker.check_source("<div>", 'Broken.tsx')


class TestCustomCatalog:

    def test_restricted_set(self):
        catalog = GlobalCatalog(browser=frozenset({'screen', 'fetch'}), server=frozenset({'fetch'}))
        checker = SSRGlobalsChecker(catalog=catalog)

        assert checker.restricted == frozenset({'screen'})
        assert [f.name for f in checker.check_source("screen.width; fetch('/'); location.href;", 'a.jsx')] == ['screen']


def test_rule_meta():
    assert RULE_META['type'] == 'problem'
    assert RULE_META['docs']['recommended'] is True
