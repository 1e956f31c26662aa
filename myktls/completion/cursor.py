"""
Cursor locator.

Maps a caret position onto the token it sits in and that token's index in
the token stream. The suggestion engine asks the grammar what may follow
the tokens up to and including that index.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from lark import Token, Tree
from lsprotocol.types import Position

from myktls.grammar.parser import IDENTIFIER, ParseResult


@dataclass(frozen=True)
class CaretPosition:
    """Caret in grammar convention: 1-based line, 0-based column."""

    line: int
    column: int

    @classmethod
    def from_lsp(cls, position: Position) -> CaretPosition:
        """Translate a 0-based LSP (line, character) position counted in code points."""
        return cls(line=position.line + 1, column=position.character)


@dataclass(frozen=True)
class CursorContext:
    """
    Where the caret is, grammatically.

    Attributes:
        node: Token containing the caret, or None before the first token
        index: Index in the token stream of the last token before the caret
        text: Part of the identifier at the caret already typed
    """

    node: Token | None
    index: int
    text: str = ""

    @property
    def is_identifier(self) -> bool:
        return isinstance(self.node, Token) and self.node.type == IDENTIFIER


def compute_token_position(parse_result: ParseResult, caret: CaretPosition) -> CursorContext:
    """
    Find the token the caret falls in.

    The tree is searched first, depth-first, pruning rules whose lines
    exclude the caret. Tokens the tree does not hold (whitespace, comments,
    dropped tokens) are found by scanning the stream. A caret past every
    token belongs to the last token before it; a caret before all tokens
    gets index -1.
    """
    token = _find_in_tree(parse_result.tree, caret)
    if token is not None:
        index = parse_result.index_of(token)
        if index is not None:
            return _context_for(token, index, caret)

    preceding: tuple[int, Token] | None = None
    for index, token in enumerate(parse_result.tokens):
        if _contains(token, caret):
            return _context_for(token, index, caret)
        if _end_of(token) <= (caret.line, caret.column):
            preceding = (index, token)

    if preceding is not None:
        index, token = preceding
        return CursorContext(node=token, index=index)
    return CursorContext(node=None, index=-1)


def locate(parse_result: ParseResult, caret: CaretPosition) -> CursorContext:
    """
    Cursor context for completion.

    On an identifier the index moves back by one, so the identifier being
    typed is completed instead of being treated as finished.
    """
    context = compute_token_position(parse_result, caret)
    if context.is_identifier:
        return replace(context, index=context.index - 1)
    return context


def _find_in_tree(node: Tree | Token, caret: CaretPosition) -> Token | None:
    if isinstance(node, Token):
        if node.value and _contains(node, caret):
            return node
        return None

    meta = node.meta
    if not getattr(meta, "empty", True) and not (meta.line <= caret.line <= meta.end_line):
        return None

    for child in node.children:
        found = _find_in_tree(child, caret)
        if found is not None:
            return found
    return None


def _context_for(token: Token, index: int, caret: CaretPosition) -> CursorContext:
    text = ""
    if token.type == IDENTIFIER and token.line == caret.line:
        text = token.value[: caret.column - (token.column - 1)]
    return CursorContext(node=token, index=index, text=text)


def _start_of(token: Token) -> tuple[int, int]:
    return token.line, token.column - 1


def _end_of(token: Token) -> tuple[int, int]:
    return token.end_line, token.end_column - 1


def _contains(token: Token, caret: CaretPosition) -> bool:
    return _start_of(token) <= (caret.line, caret.column) <= _end_of(token)
