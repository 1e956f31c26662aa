"""
Tests for myktls/completion/symbols.py
"""
import pytest

from myktls.completion.symbols import (
    SymbolEntry,
    SymbolKind,
    SymbolTable,
    SymbolTableVisitor,
)
from myktls.grammar.parser import get_grammar


SOURCE = """\
class Point(val x: Int, val y: Int) {
    fun norm(): Int = x * x + y * y
}

fun main(args: String) {
    val p = Point(1, 2)
    for (i in range(3)) {
        var total = i
    }
}
val answer = 42
"""


@pytest.fixture(scope="module")
def grammar():
    return get_grammar()


class TestSymbolTable:
    def test_keeps_insertion_order_and_duplicates(self):
        table = SymbolTable()
        table.add(SymbolEntry("b", SymbolKind.VALUE, None, 1, 0))
        table.add(SymbolEntry("a", SymbolKind.FUNCTION, None, 2, 0))
        table.add(SymbolEntry("b", SymbolKind.TYPE, None, 3, 0))

        assert table.names() == ["b", "a", "b"]
        assert len(table) == 3
        assert [entry.line for entry in table] == [1, 2, 3]


class TestSymbolTableVisitor:
    def test_declarations_in_source_order(self, grammar):
        tree = grammar.parse(SOURCE).tree

        table = SymbolTableVisitor().visit_file(tree, "main.mykt")

        assert [(entry.name, entry.kind) for entry in table] == [
            ("Point", SymbolKind.TYPE),
            ("x", SymbolKind.VALUE),
            ("y", SymbolKind.VALUE),
            ("norm", SymbolKind.FUNCTION),
            ("main", SymbolKind.FUNCTION),
            ("args", SymbolKind.VALUE),
            ("p", SymbolKind.VALUE),
            ("i", SymbolKind.VALUE),
            ("total", SymbolKind.VALUE),
            ("answer", SymbolKind.VALUE),
        ]

    def test_entry_position_and_source(self, grammar):
        tree = grammar.parse("val a = 1\n  fun go() = a").tree

        table = SymbolTableVisitor().visit_file(tree, "file:///work/main.mykt")

        go = next(entry for entry in table if entry.name == "go")
        assert (go.line, go.column) == (2, 6)
        assert go.source == "file:///work/main.mykt"

    def test_duplicate_names_are_kept(self, grammar):
        tree = grammar.parse("val a = 1\nval a = 2").tree

        assert SymbolTableVisitor().visit_file(tree).names() == ["a", "a"]

    def test_references_are_not_declarations(self, grammar):
        tree = grammar.parse("val a = b + c(d)").tree

        assert SymbolTableVisitor().visit_file(tree).names() == ["a"]

    def test_visiting_several_files_merges_tables(self, grammar):
        visitor = SymbolTableVisitor()

        visitor.visit_file(grammar.parse("val local = 1").tree, "main.mykt")
        visitor.visit_file(grammar.parse("fun helper() = 2").tree, "lib.mykt")

        assert [(entry.name, entry.source) for entry in visitor.symbol_table] == [
            ("local", "main.mykt"),
            ("helper", "lib.mykt"),
        ]

    def test_uses_given_table(self, grammar):
        table = SymbolTable()
        visitor = SymbolTableVisitor(table)

        visitor.visit_file(grammar.parse("val a = 1").tree)

        assert table.names() == ["a"]

    def test_synthesized_names_are_skipped(self, grammar):
        tree = grammar.parse("val = 1\nfun").tree

        assert SymbolTableVisitor().visit_file(tree).names() == []

    def test_empty_file(self, grammar):
        assert len(SymbolTableVisitor().visit_file(grammar.parse("").tree)) == 0
