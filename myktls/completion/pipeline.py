"""
Completion pipeline for one request.

parse → local symbols → imports → cursor → suggestions. Everything built
here belongs to the request and is discarded afterwards.
"""

from __future__ import annotations

from myktls.completion.cursor import CaretPosition
from myktls.completion.filters import TokenFilter, filter_fuzzy
from myktls.completion.imports import (
    ImportResolver,
    WarningSink,
    extract_imports,
)
from myktls.completion.suggestions import Suggestion, SuggestionEngine
from myktls.completion.symbols import SymbolTable, SymbolTableVisitor
from myktls.grammar.parser import MyktGrammar, get_grammar


def collect_suggestions(
    text: str,
    location: str,
    caret: CaretPosition,
    grammar: MyktGrammar | None = None,
    token_filter: TokenFilter = filter_fuzzy,
    warn: WarningSink | None = None,
    include_operators: bool = False,
) -> list[Suggestion]:
    """
    Completion candidates for a caret in a document.

    Args:
        text: Current content of the document
        location: URI or path of the document, used to find imports
        caret: Caret position in grammar convention
        grammar: Grammar to parse with, the shared one by default
        token_filter: Matches candidates against the typed identifier
        warn: Receives non-fatal notices about imports
        include_operators: Also offer punctuation and operators

    Raises:
        LocationDecodeError: If the file has imports and location is a
            malformed URI
    """
    grammar = grammar or get_grammar()
    warn = warn or _ignore

    parse_result = grammar.parse(text)

    symbol_table = SymbolTable()
    visitor = SymbolTableVisitor(symbol_table)
    visitor.visit_file(parse_result.tree, location)

    imports = extract_imports(parse_result.tree)
    if imports:
        ImportResolver(grammar, visitor, warn).resolve_imports(imports, location)

    engine = SuggestionEngine(
        grammar, token_filter=token_filter, include_operators=include_operators
    )
    return engine.suggest(parse_result, symbol_table, caret)


def _ignore(message: str) -> None:
    pass
