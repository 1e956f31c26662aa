"""
Import resolution.

`import lib` in a mykt file refers to `lib.mykt` in the same directory.
Imported files are parsed and their declarations merged into the symbol
table of the request. Their own imports are not followed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from lark import Token, Tree
from lark.exceptions import LarkError

from myktls.completion.symbols import SymbolTableVisitor
from myktls.grammar.parser import MyktGrammar
from myktls.utils.paths import compute_base_path


IMPORT_EXTENSION = ".mykt"

WarningSink = Callable[[str], None]


@dataclass(frozen=True)
class ImportReference:
    """The name in one import declaration."""

    name: str
    token: Token


def extract_imports(tree: Tree) -> list[ImportReference]:
    """
    Import declarations of a parsed file, in source order.

    A file without a preamble (possible after error recovery) has no
    imports.
    """
    imports: list[ImportReference] = []
    for preamble in _children(tree, "preamble"):
        for import_list in _children(preamble, "import_list"):
            for header in _children(import_list, "import_header"):
                for qualified_name in _children(header, "qualified_name"):
                    parts = [
                        child
                        for child in qualified_name.children
                        if isinstance(child, Token) and child.type == "NAME"
                    ]
                    if not parts or not all(part.value for part in parts):
                        continue
                    imports.append(
                        ImportReference(
                            name=".".join(part.value for part in parts),
                            token=parts[0],
                        )
                    )
    return imports


class ImportResolver:
    """
    Feeds the files named by import declarations into a symbol table.

    A missing or unreadable import is reported through `warn` and skipped;
    it never aborts the request.
    """

    def __init__(
        self,
        grammar: MyktGrammar,
        visitor: SymbolTableVisitor,
        warn: WarningSink,
    ) -> None:
        self.grammar = grammar
        self.visitor = visitor
        self.warn = warn

    def resolve_imports(
        self, imports: list[ImportReference], owner_location: str
    ) -> list[str]:
        """
        Resolve each import once, relative to the importing file.

        Args:
            imports: Import declarations of the owner file
            owner_location: URI or path of the owner file

        Returns:
            Paths of the imported files that were visited.

        Raises:
            LocationDecodeError: If owner_location cannot be decoded
        """
        base_path = compute_base_path(owner_location)
        visited: list[str] = []

        for reference in imports:
            file_path = base_path + reference.name + IMPORT_EXTENSION
            if not Path(file_path).exists():
                self.warn(f"Imported file not found: {file_path}")
                continue
            if self._process_import(file_path):
                visited.append(file_path)

        return visited

    def _process_import(self, file_path: str) -> bool:
        try:
            source = Path(file_path).read_text(encoding="utf-8")
            parse_result = self.grammar.parse(source)
        except (OSError, UnicodeDecodeError, LarkError) as e:
            self.warn(f"Cannot read from imported file {file_path}: {e}")
            return False

        self.visitor.visit_file(parse_result.tree, file_path)
        return True


def _children(tree: Tree, rule: str) -> list[Tree]:
    return [
        child
        for child in tree.children
        if isinstance(child, Tree) and child.data == rule
    ]
