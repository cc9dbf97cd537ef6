"""Tree-sitter parser for JSX and TSX sources."""
import re
from pathlib import Path
from typing import Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


# Only markup-capable sources are ever analysed
MARKUP_FILE_PATTERN = re.compile(r'\.(jsx|tsx)$', re.IGNORECASE)


class UnparsableSourceError(ValueError):
    """Raised when tree-sitter cannot produce an error-free tree."""

    def __init__(self, file_path: str, line: int, column: int):
        self.file_path = file_path
        self.line = line
        self.column = column
        super().__init__(f"{file_path}:{line}:{column}: syntax error")


def is_markup_file(file_path: str | Path) -> bool:
    """Check whether a file name carries a .jsx or .tsx extension.

    Args:
        file_path: File name or path

    Returns:
        True if the file should be analysed
    """
    return MARKUP_FILE_PATTERN.search(str(file_path)) is not None


class LanguageParser:
    """JSX/TSX parser using the tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.jsx': 'javascript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str):
        """Initialize parser for given language (javascript, tsx).

        Args:
            language: One of 'javascript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using the Parser(Language(capsule)) API.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'javascript':
            # The JavaScript grammar parses JSX natively
            lang = Language(tsjavascript.language())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: str | bytes, file_path: str = "<input>") -> Tree:
        """Parse source code and return a tree without syntax errors.

        Args:
            source_code: Source text or UTF-8 bytes
            file_path: Name used in error messages

        Returns:
            Parsed Tree object

        Raises:
            UnparsableSourceError: If the tree contains ERROR or MISSING nodes
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')

        tree = self.parser.parse(source_code)
        if tree.root_node.has_error:
            row, column = _first_error_point(tree.root_node)
            raise UnparsableSourceError(file_path, row + 1, column + 1)
        return tree

    def parse_file(self, file_path: str | Path) -> Tree:
        """Parse file and return tree-sitter Tree.

        Args:
            file_path: Path to source file to parse

        Returns:
            Parsed Tree object

        Raises:
            OSError: If the file cannot be read
            UnparsableSourceError: If the file has syntax errors
        """
        file_path = Path(file_path)
        return self.parse_source(file_path.read_bytes(), str(file_path))

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Uses the same match as is_markup_file, so a bare `.jsx` file name
        (no stem) still selects a grammar.

        Args:
            file_path: Path to determine language from

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        match = MARKUP_FILE_PATTERN.search(str(file_path))
        if match is None:
            return None

        language = cls.SUPPORTED_LANGUAGES.get('.' + match.group(1).lower())
        if language:
            return cls(language)
        return None


def _first_error_point(node) -> tuple[int, int]:
    """Locate the first ERROR or MISSING node below node."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_error or current.is_missing:
            return tuple(current.start_point)
        if current.has_error:
            stack.extend(reversed(current.children))
    return tuple(node.start_point)
