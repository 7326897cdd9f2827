"""Tree-sitter parser front end for JavaScript sources."""
from pathlib import Path
from typing import Optional, Tuple
from tree_sitter import Language, Node, Parser, Tree
import tree_sitter_javascript as tsjavascript


class ParseError(ValueError):
    """Raised when tree-sitter recovers from a syntax error.

    Attributes:
        line: 1-based line of the first error
        column: 0-based column of the first error
    """

    def __init__(self, message: str, line: int, column: int, path: Optional[str] = None):
        location = f"{path}:{line}:{column}" if path else f"{line}:{column}"
        super().__init__(f"{location}: {message}")
        self.line = line
        self.column = column
        self.path = path


class LanguageParser:
    """JavaScript parser using the tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.js': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.jsx': 'javascript',
    }

    def __init__(self, language: str = 'javascript'):
        """Initialize parser for the given language.

        Args:
            language: Only 'javascript' is supported

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        if self.language != 'javascript':
            raise ValueError(f"Unsupported language: {self.language}")
        return Parser(Language(tsjavascript.language()))

    def parse_source(self, source: str | bytes, path: Optional[str] = None) -> Tree:
        """Parse source text into a tree-sitter Tree.

        Args:
            source: JavaScript source code
            path: Optional file name used in error messages

        Returns:
            Parsed Tree with no ERROR or MISSING nodes

        Raises:
            ParseError: If the source does not parse cleanly
        """
        if isinstance(source, str):
            source = source.encode('utf-8')
        tree = self.parser.parse(source)
        if tree.root_node.has_error:
            kind, (row, column) = _first_error(tree.root_node)
            raise ParseError(kind, row + 1, column, path)
        return tree

    def read_source(self, file_path: str | Path) -> Optional[bytes]:
        """Read a source file as UTF-8 bytes.

        Returns:
            The file contents, or None if the file is missing, unreadable or not UTF-8
        """
        file_path = Path(file_path)

        if not file_path.exists():
            return None

        try:
            source_code = file_path.read_bytes()
            source_code.decode('utf-8')
        except (UnicodeDecodeError, OSError):
            return None
        return source_code

    def parse_file(self, file_path: str | Path) -> Optional[Tree]:
        """Parse a file and return its tree-sitter Tree.

        Args:
            file_path: Path to source file to parse

        Returns:
            Parsed Tree, or None if the file is missing or unreadable

        Raises:
            ParseError: If the file contains a syntax error
        """
        source_code = self.read_source(file_path)
        if source_code is None:
            return None
        return self.parse_source(source_code, str(file_path))

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        language = cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())
        if language:
            return cls(language)
        return None


def _first_error(root: Node) -> Tuple[str, Tuple[int, int]]:
    """Locate the first ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == 'ERROR':
            return "syntax error", tuple(node.start_point)
        if node.is_missing:
            return f"missing '{node.type}'", tuple(node.start_point)
        if node.has_error:
            stack.extend(reversed(node.children))
    return "syntax error", tuple(root.start_point)
