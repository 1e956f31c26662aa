"""
Symbol table for completion.

The table is deliberately flat: every declaration found in the current file
and its direct imports is a candidate, in declaration order. Names declared
twice stay twice; nothing is shadowed.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from lark import Token, Tree, Visitor


class SymbolKind(Enum):
    """What a declared name stands for."""

    VALUE = "value"         # val/var, parameters, loop variables
    FUNCTION = "function"   # fun
    TYPE = "type"           # class


@dataclass(frozen=True)
class SymbolEntry:
    """A declared name and where it was declared."""

    name: str
    kind: SymbolKind
    source: str | None
    line: int
    column: int


class SymbolTable:
    """Declared symbols of one completion request, in insertion order."""

    def __init__(self) -> None:
        self._entries: list[SymbolEntry] = []

    def add(self, entry: SymbolEntry) -> None:
        self._entries.append(entry)

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def __iter__(self) -> Iterator[SymbolEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class SymbolTableVisitor(Visitor):
    """
    Collect declarations from a mykt parse tree.

    One method per declaration-bearing rule; lark dispatches on the rule
    name. Trees are walked top-down so entries follow source order, and a
    single visitor can be run over several files to merge them into one
    table.

    Usage:
        visitor = SymbolTableVisitor()
        visitor.visit_file(local_tree, "file:///work/main.mykt")
        visitor.visit_file(imported_tree, "/work/lib.mykt")
        visitor.symbol_table.names()
    """

    def __init__(self, symbol_table: SymbolTable | None = None) -> None:
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self._source: str | None = None

    def visit_file(self, tree: Tree, source: str | None = None) -> SymbolTable:
        self._source = source
        self.visit_topdown(tree)
        return self.symbol_table

    def property_declaration(self, tree: Tree) -> None:
        self._declare(tree, SymbolKind.VALUE)

    def parameter(self, tree: Tree) -> None:
        self._declare(tree, SymbolKind.VALUE)

    def class_parameter(self, tree: Tree) -> None:
        self._declare(tree, SymbolKind.VALUE)

    def for_statement(self, tree: Tree) -> None:
        self._declare(tree, SymbolKind.VALUE)

    def function_declaration(self, tree: Tree) -> None:
        self._declare(tree, SymbolKind.FUNCTION)

    def class_declaration(self, tree: Tree) -> None:
        self._declare(tree, SymbolKind.TYPE)

    def _declare(self, tree: Tree, kind: SymbolKind) -> None:
        # The declared name is the first NAME directly under the rule.
        name = next(
            (
                child
                for child in tree.children
                if isinstance(child, Token) and child.type == "NAME"
            ),
            None,
        )
        if name is None or not name.value:
            return

        self.symbol_table.add(
            SymbolEntry(
                name=name.value,
                kind=kind,
                source=self._source,
                line=name.line,
                column=name.column - 1,
            )
        )
