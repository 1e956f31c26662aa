"""mykt grammar and its error-recovering parser."""
from .parser import (
    HIDDEN_TERMINALS,
    IDENTIFIER,
    MyktGrammar,
    ParseResult,
    SyntaxIssue,
    get_grammar,
)

__all__ = [
    "HIDDEN_TERMINALS",
    "IDENTIFIER",
    "MyktGrammar",
    "ParseResult",
    "SyntaxIssue",
    "get_grammar",
]
