"""
Suggestion engine.

Combines two sources of candidates at the caret:

1. Syntactic: the terminals the grammar accepts after the tokens before the
   caret. Keyword terminals are offered as their text.
2. Semantic: when an identifier is acceptable, every name in the symbol
   table is offered instead of a generic identifier.

Both lists go through the same token filter against the identifier typed so
far. Keywords come first, then symbols; within each list the discovery
order is kept and repeated labels are dropped.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from myktls.completion.cursor import CaretPosition, CursorContext, locate
from myktls.completion.filters import TokenFilter, filter_fuzzy
from myktls.completion.symbols import SymbolKind, SymbolTable
from myktls.grammar.parser import IDENTIFIER, MyktGrammar, ParseResult


Locator = Callable[[ParseResult, CaretPosition], CursorContext]


class SuggestionKind(Enum):
    """Display category of a suggestion."""

    KEYWORD = "keyword"
    VALUE = "value"
    FUNCTION = "function"
    TYPE = "type"


_KIND_OF_SYMBOL = {
    SymbolKind.VALUE: SuggestionKind.VALUE,
    SymbolKind.FUNCTION: SuggestionKind.FUNCTION,
    SymbolKind.TYPE: SuggestionKind.TYPE,
}


@dataclass(frozen=True)
class Suggestion:
    """A completion candidate."""

    label: str
    kind: SuggestionKind


class SuggestionEngine:
    """
    Produces completion candidates for a caret in a parsed file.

    Args:
        grammar: The grammar the file was parsed with
        token_filter: Matches candidates against the typed identifier
        include_operators: Also offer punctuation and operator terminals
    """

    def __init__(
        self,
        grammar: MyktGrammar,
        token_filter: TokenFilter = filter_fuzzy,
        include_operators: bool = False,
    ) -> None:
        self.grammar = grammar
        self.token_filter = token_filter
        self.include_operators = include_operators

    def suggest(
        self,
        parse_result: ParseResult,
        symbol_table: SymbolTable,
        caret: CaretPosition,
        locate: Locator = locate,
    ) -> list[Suggestion]:
        context = locate(parse_result, caret)
        expected = self.grammar.expected_terminals(parse_result.tokens, context.index)

        suggestions = [
            Suggestion(label, SuggestionKind.KEYWORD)
            for label in self.token_filter(context.text, self._keywords(expected))
        ]

        if IDENTIFIER in expected:
            matching = set(self.token_filter(context.text, symbol_table.names()))
            suggestions.extend(
                Suggestion(entry.name, _KIND_OF_SYMBOL[entry.kind])
                for entry in symbol_table
                if entry.name in matching
            )

        return _unique(suggestions)

    def _keywords(self, expected: list[str]) -> list[str]:
        keywords = []
        for terminal in expected:
            text = self.grammar.literal_text(terminal)
            if text is None:
                continue
            if text.isidentifier() or self.include_operators:
                keywords.append(text)
        return keywords


def _unique(suggestions: list[Suggestion]) -> list[Suggestion]:
    seen: set[str] = set()
    unique = []
    for suggestion in suggestions:
        if suggestion.label in seen:
            continue
        seen.add(suggestion.label)
        unique.append(suggestion)
    return unique
