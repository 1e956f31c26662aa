"""Completion pipeline for mykt documents."""
from .cursor import CaretPosition, CursorContext, compute_token_position, locate
from .filters import filter_exact_prefix, filter_fuzzy, filter_none, get_token_filter
from .imports import ImportReference, ImportResolver, extract_imports
from .pipeline import collect_suggestions
from .suggestions import Suggestion, SuggestionEngine, SuggestionKind
from .symbols import SymbolEntry, SymbolKind, SymbolTable, SymbolTableVisitor

__all__ = [
    "CaretPosition",
    "CursorContext",
    "compute_token_position",
    "locate",
    "filter_exact_prefix",
    "filter_fuzzy",
    "filter_none",
    "get_token_filter",
    "ImportReference",
    "ImportResolver",
    "extract_imports",
    "collect_suggestions",
    "Suggestion",
    "SuggestionEngine",
    "SuggestionKind",
    "SymbolEntry",
    "SymbolKind",
    "SymbolTable",
    "SymbolTableVisitor",
]
