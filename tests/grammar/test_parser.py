"""
Tests for myktls/grammar/parser.py

Covers tokenization (hidden tokens, keywords, unlexable characters),
parsing with error recovery, and expected-terminal analysis.
"""
from __future__ import annotations

import time
from unittest.mock import patch

import pytest

from myktls.completion.symbols import SymbolTableVisitor
from myktls.grammar.parser import (
    BAD_CHARACTER,
    MyktGrammar,
    get_grammar,
)


@pytest.fixture(scope="module")
def grammar() -> MyktGrammar:
    return get_grammar()


def declared_names(grammar: MyktGrammar, text: str) -> list[str]:
    tree = grammar.parse(text).tree
    return SymbolTableVisitor().visit_file(tree).names()


class TestTokenize:
    def test_hidden_tokens_are_kept(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("val x = 1 // note")

        assert [t.type for t in tokens] == [
            "VAL", "WS", "NAME", "WS", "EQUAL", "WS", "NUMBER", "WS", "LINE_COMMENT",
        ]

    def test_keywords_and_identifiers(self, grammar: MyktGrammar):
        tokens = [t for t in grammar.tokenize("val value import imports") if t.type != "WS"]

        assert [(t.type, t.value) for t in tokens] == [
            ("VAL", "val"),
            ("NAME", "value"),
            ("IMPORT", "import"),
            ("NAME", "imports"),
        ]

    def test_two_character_operators(self, grammar: MyktGrammar):
        tokens = [t.type for t in grammar.tokenize("a == b != c <= d && e || f") if t.type != "WS"]

        assert "EQEQ" in tokens
        assert "EXCL_EQ" in tokens
        assert "LE" in tokens
        assert "CONJ" in tokens
        assert "DISJ" in tokens
        assert "EQUAL" not in tokens

    def test_delimited_comment_spans_lines(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("/* a\nb */ val")

        assert tokens[0].type == "DELIMITED_COMMENT"
        assert tokens[0].end_line == 2
        assert tokens[-1].type == "VAL"

    def test_empty_text(self, grammar: MyktGrammar):
        assert grammar.tokenize("") == []

    def test_bad_character_becomes_token(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("val x = #1")

        bad = [t for t in tokens if t.type == BAD_CHARACTER]
        assert len(bad) == 1
        assert bad[0].value == "#"
        assert bad[0].start_pos == 8
        assert (bad[0].line, bad[0].column) == (1, 9)

        number = tokens[-1]
        assert number.type == "NUMBER"
        assert number.start_pos == 9
        assert (number.line, number.column) == (1, 10)

    def test_run_of_bad_characters_is_one_token(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("val x = 1 " + "#" * 1000 + "\nval y = 2")

        bad = [t for t in tokens if t.type == BAD_CHARACTER]
        assert len(bad) == 1
        assert bad[0].value == "#" * 1000
        assert (bad[0].column, bad[0].end_column) == (11, 1011)

        last_val = [t for t in tokens if t.type == "VAL"][-1]
        assert (last_val.line, last_val.column) == (2, 1)

    def test_positions_after_bad_character_on_later_line(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("val a = 1\nval b = @\nval c = 2")

        bad = next(t for t in tokens if t.type == BAD_CHARACTER)
        assert (bad.line, bad.column) == (2, 9)

        last_val = [t for t in tokens if t.type == "VAL"][-1]
        assert (last_val.line, last_val.column) == (3, 1)
        assert last_val.start_pos == 20


class TestParse:
    def test_valid_file_has_no_issues(self, grammar: MyktGrammar):
        text = (
            "package demo.app\n"
            "import lib\n"
            "\n"
            "class Point(val x: Int, val y: Int) {\n"
            "    fun norm(): Int = x * x + y * y\n"
            "}\n"
            "\n"
            "fun main(args: String) {\n"
            "    var total = 0\n"
            "    for (i in range(3)) {\n"
            "        total = total + i\n"
            "    }\n"
            "    while (total > 0) total = total - 1\n"
            "    if (total == 0) println(\"done\") else return\n"
            "}\n"
        )

        result = grammar.parse(text)

        assert result.issues == []
        assert result.tree.data == "kotlin_file"
        assert len(list(result.tree.find_data("function_declaration"))) == 2
        assert len(list(result.tree.find_data("class_declaration"))) == 1

    def test_empty_file(self, grammar: MyktGrammar):
        result = grammar.parse("")

        assert result.issues == []
        assert result.tokens == []
        assert result.tree.data == "kotlin_file"

    def test_unfinished_declaration_is_completed(self, grammar: MyktGrammar):
        result = grammar.parse("val x = 1\nval y = ")

        assert result.issues
        assert declared_names(grammar, "val x = 1\nval y = ") == ["x", "y"]

    def test_unclosed_block(self, grammar: MyktGrammar):
        text = "fun f() {\n  val a = 1\n"

        assert declared_names(grammar, text) == ["f", "a"]

    def test_missing_name_is_inserted(self, grammar: MyktGrammar):
        result = grammar.parse("val = 3\nval ok = 1")

        assert any("Missing NAME" in issue.message for issue in result.issues)
        assert declared_names(grammar, "val = 3\nval ok = 1") == ["ok"]

    def test_bad_character_is_dropped(self, grammar: MyktGrammar):
        text = "val a = 1 #\nval b = 2"
        result = grammar.parse(text)

        assert any(BAD_CHARACTER in issue.message for issue in result.issues)
        assert declared_names(grammar, text) == ["a", "b"]

    def test_bad_characters_skip_repair(self, grammar: MyktGrammar):
        text = "val a = 1 " + "#@" * 500 + "\nval b = 2"

        with patch.object(grammar, "_insert_missing", wraps=grammar._insert_missing) as repair:
            result = grammar.parse(text)

        repair.assert_not_called()
        assert len(result.issues) == 1
        assert declared_names(grammar, text) == ["a", "b"]

    def test_deeply_broken_input_finishes_quickly(self, grammar: MyktGrammar):
        text = "val a = (" * 200

        started = time.perf_counter()
        result = grammar.parse(text)
        tokens = result.tokens
        grammar.expected_terminals(tokens, len(tokens) - 1)

        assert result.issues
        assert time.perf_counter() - started < 5

    def test_synthesized_tokens_have_no_index(self, grammar: MyktGrammar):
        result = grammar.parse("val y = ")

        synthesized = [
            token
            for token in result.tree.scan_values(lambda v: hasattr(v, "type"))
            if token.value == ""
        ]
        assert synthesized
        assert all(result.index_of(token) is None for token in synthesized)

    def test_index_of_real_token(self, grammar: MyktGrammar):
        result = grammar.parse("val abc = 1")
        name = next(result.tree.scan_values(lambda v: getattr(v, "type", None) == "NAME"))

        assert result.index_of(name) == 2


class TestExpectedTerminals:
    def test_start_of_file(self, grammar: MyktGrammar):
        expected = grammar.expected_terminals([], -1)

        assert set(expected) == {"PACKAGE", "IMPORT", "CLASS", "FUN", "VAL", "VAR"}

    def test_after_assignment_operator(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("val y =")
        expected = grammar.expected_terminals(tokens, len(tokens) - 1)

        assert {"NAME", "NUMBER", "STRING", "TRUE", "FALSE", "NULL", "IF", "LPAR"} <= set(expected)
        assert "VAL" not in expected
        assert "$END" not in expected

    def test_order_is_stable(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("fun f() {\n")

        first = grammar.expected_terminals(tokens, len(tokens) - 1)
        second = grammar.expected_terminals(tokens, len(tokens) - 1)

        assert first == second

    def test_broken_prefix_is_repaired(self, grammar: MyktGrammar):
        tokens = grammar.tokenize("val a = 1 ) val b =")
        expected = grammar.expected_terminals(tokens, len(tokens) - 1)

        assert "NAME" in expected


class TestLiteralText:
    def test_keyword(self, grammar: MyktGrammar):
        assert grammar.literal_text("VAL") == "val"
        assert grammar.literal_text("RPAR") == ")"

    def test_pattern_terminal(self, grammar: MyktGrammar):
        assert grammar.literal_text("NAME") is None
        assert grammar.literal_text("NUMBER") is None

    def test_unknown_terminal(self, grammar: MyktGrammar):
        assert grammar.literal_text("NOPE") is None
