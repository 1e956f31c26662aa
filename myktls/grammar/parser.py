"""
Error-recovering front end for the mykt grammar.

lark provides the lexer and the LALR tables. This module adds what the
completion pipeline needs on top of them:

1. A token stream that keeps hidden tokens (whitespace, comments) so every
   caret position falls inside some token.
2. A parse that never fails: unexpected tokens are repaired by inserting one
   missing token or by dropping the offending token, and an unfinished file
   is completed with synthesized tokens.
3. The set of terminals the parser accepts after a given token prefix.

Synthesized tokens carry an empty value and borrow the position of the
token before them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedToken
from lark.lexer import PatternStr

if TYPE_CHECKING:
    from lark.parsers.lalr_interactive_parser import InteractiveParser


START_RULE = "kotlin_file"
IDENTIFIER = "NAME"
END = "$END"
BAD_CHARACTER = "BAD_CHARACTER"

HIDDEN_TERMINALS = frozenset({"WS", "LINE_COMMENT", "DELIMITED_COMMENT"})

# Tried first when repairing input; closers finish open constructs quickly.
INSERTION_PREFERENCE = ("RPAR", "RBRACE", IDENTIFIER)

# Upper bound on tokens synthesized to finish an incomplete file.
MAX_COMPLETION_TOKENS = 32


@dataclass
class SyntaxIssue:
    """A problem the parser recovered from."""

    message: str
    line: int
    column: int


@dataclass
class ParseResult:
    """Parse tree plus the full token stream of one source text."""

    text: str
    tree: Tree
    tokens: list[Token]
    issues: list[SyntaxIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._index_by_offset = {
            token.start_pos: index for index, token in enumerate(self.tokens)
        }

    def index_of(self, token: Token) -> int | None:
        """Stream index of a token from the tree, None for synthesized ones."""
        if not token.value:
            return None
        return self._index_by_offset.get(token.start_pos)


class MyktGrammar:
    """
    The compiled mykt grammar.

    Instances are immutable after construction and can be shared by every
    request; use get_grammar() for the process-wide instance.
    """

    def __init__(self) -> None:
        self.lark = Lark.open(
            "mykt.lark",
            rel_to=__file__,
            start=START_RULE,
            parser="lalr",
            lexer="basic",
            propagate_positions=True,
            maybe_placeholders=False,
        )
        self._terminals = {terminal.name: terminal for terminal in self.lark.terminals}
        self._terminal_order = {
            terminal.name: position
            for position, terminal in enumerate(self.lark.terminals)
        }
        # Matches wherever some terminal can start.
        self._token_start = re.compile(
            "|".join(f"(?:{terminal.pattern.to_regexp()})" for terminal in self.lark.terminals)
        )

    # ===== Lexing =====

    def tokenize(self, text: str) -> list[Token]:
        """
        Split text into tokens, hidden ones included.

        A run of characters no terminal can start with becomes one
        BAD_CHARACTER token and lexing resumes right after it.
        """
        tokens: list[Token] = []
        offset, line, column = 0, 1, 1

        while True:
            try:
                for token in self.lark.lex(text[offset:], dont_ignore=True):
                    tokens.append(_relocate(token, offset, line, column))
                return tokens
            except UnexpectedCharacters as e:
                bad_pos = offset + e.pos_in_stream
                bad_end = self._skip_unlexable(text, bad_pos)
                bad_line = e.line + line - 1
                bad_column = e.column + column - 1 if e.line == 1 else e.column
                bad_width = bad_end - bad_pos
                tokens.append(
                    Token(
                        BAD_CHARACTER,
                        text[bad_pos:bad_end],
                        start_pos=bad_pos,
                        line=bad_line,
                        column=bad_column,
                        end_line=bad_line,
                        end_column=bad_column + bad_width,
                        end_pos=bad_end,
                    )
                )
                offset, line, column = bad_end, bad_line, bad_column + bad_width

    def _skip_unlexable(self, text: str, pos: int) -> int:
        """End of the run of characters at pos that start no token."""
        end = pos + 1
        while end < len(text) and not self._token_start.match(text, end):
            end += 1
        return end

    # ===== Parsing =====

    def parse(self, text: str) -> ParseResult:
        """Tokenize and parse text, recovering from every syntax error."""
        tokens = self.tokenize(text)
        issues: list[SyntaxIssue] = []
        interactive = self._start()

        last: Token | None = None
        for token in tokens:
            if token.type in HIDDEN_TERMINALS:
                continue
            self._feed(interactive, token, last, issues)
            last = token

        tree = self._finish(interactive, last, issues)
        return ParseResult(text=text, tree=tree, tokens=tokens, issues=issues)

    def expected_terminals(self, tokens: list[Token], last_index: int) -> list[str]:
        """
        Terminals the grammar accepts after tokens[0..last_index].

        Hidden tokens are skipped and broken input is repaired the same way
        parse() repairs it. The result is in grammar order and never
        contains the end-of-input marker.
        """
        interactive = self._start()
        last: Token | None = None
        for token in tokens[: last_index + 1]:
            if token.type in HIDDEN_TERMINALS:
                continue
            self._feed(interactive, token, last, [])
            last = token

        accepted = interactive.accepts() - {END}
        return sorted(accepted, key=lambda name: self._terminal_order.get(name, 0))

    # ===== Vocabulary =====

    def literal_text(self, terminal: str) -> str | None:
        """Fixed source text of a terminal, None for pattern terminals."""
        definition = self._terminals.get(terminal)
        if definition is None or not isinstance(definition.pattern, PatternStr):
            return None
        return definition.pattern.value

    # ===== Internals =====

    def _start(self) -> InteractiveParser:
        return self.lark.parse_interactive(start=START_RULE)

    def _feed(
        self,
        interactive: InteractiveParser,
        token: Token,
        last: Token | None,
        issues: list[SyntaxIssue],
    ) -> None:
        if token.type not in self._terminals:
            # The grammar has no terminal for it; no insertion can help.
            issues.append(
                SyntaxIssue(f"Unexpected {token.type} {token.value!r}", token.line, token.column)
            )
            return

        if token.type in interactive.choices():
            try:
                interactive.feed_token(token)
                return
            except UnexpectedToken:
                # LALR lookaheads are merged across contexts; the token
                # can still be rejected after some reductions.
                pass

        missing = self._insert_missing(interactive, last, wanted=token.type)
        if missing is None:
            issues.append(
                SyntaxIssue(
                    f"Unexpected {token.type} {token.value!r}",
                    token.line,
                    token.column,
                )
            )
            return

        issues.append(
            SyntaxIssue(f"Missing {missing} before {token.value!r}", token.line, token.column)
        )
        interactive.feed_token(token)

    def _insert_missing(
        self,
        interactive: InteractiveParser,
        last: Token | None,
        wanted: str | None = None,
    ) -> str | None:
        """
        Feed one synthesized token into the parser.

        With `wanted` set, only a token after which `wanted` is accepted
        qualifies; otherwise the first token the parser takes does.
        Returns the inserted terminal name, or None.
        """
        for candidate in self._insertion_candidates(interactive):
            trial = interactive.copy(deepcopy_values=False)
            try:
                trial.feed_token(_synthesize(candidate, last))
                if wanted is not None:
                    trial.feed_token(_synthesize(wanted, last))
            except UnexpectedToken:
                continue
            interactive.feed_token(_synthesize(candidate, last))
            return candidate
        return None

    def _insertion_candidates(self, interactive: InteractiveParser) -> list[str]:
        choices = [
            name
            for name in interactive.choices()
            if name.isupper() and name != END
        ]
        preferred = [name for name in INSERTION_PREFERENCE if name in choices]
        others = sorted(
            (name for name in choices if name not in INSERTION_PREFERENCE),
            key=lambda name: self._terminal_order.get(name, 0),
        )
        return preferred + others

    def _finish(
        self,
        interactive: InteractiveParser,
        last: Token | None,
        issues: list[SyntaxIssue],
    ) -> Tree:
        for _ in range(MAX_COMPLETION_TOKENS):
            if END in interactive.choices():
                try:
                    return interactive.feed_token(_end_token(last))
                except UnexpectedToken:
                    pass
            missing = self._insert_missing(interactive, last)
            if missing is None:
                break
            line, column = (last.end_line, last.end_column) if last else (1, 1)
            issues.append(SyntaxIssue(f"Missing {missing} at end of input", line, column))

        # Keep whatever was reduced so far.
        return Tree(START_RULE, list(interactive.parser_state.value_stack))


@lru_cache(maxsize=1)
def get_grammar() -> MyktGrammar:
    """The process-wide compiled grammar."""
    return MyktGrammar()


def _relocate(token: Token, offset: int, line: int, column: int) -> Token:
    """Shift a token lexed from text[offset:] back to absolute positions."""
    if offset == 0:
        return token
    return Token(
        token.type,
        token.value,
        start_pos=token.start_pos + offset,
        line=token.line + line - 1,
        column=token.column + column - 1 if token.line == 1 else token.column,
        end_line=token.end_line + line - 1,
        end_column=token.end_column + column - 1 if token.end_line == 1 else token.end_column,
        end_pos=token.end_pos + offset,
    )


def _synthesize(terminal: str, last: Token | None) -> Token:
    if last is None:
        return Token(terminal, "", start_pos=0, line=1, column=1, end_line=1, end_column=1, end_pos=0)
    return Token(
        terminal,
        "",
        start_pos=last.end_pos,
        line=last.end_line,
        column=last.end_column,
        end_line=last.end_line,
        end_column=last.end_column,
        end_pos=last.end_pos,
    )


def _end_token(last: Token | None) -> Token:
    if last is None:
        return Token(END, "", start_pos=0, line=1, column=1)
    return Token.new_borrow_pos(END, "", last)
