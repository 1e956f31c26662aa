"""
Token filters narrow completion candidates to what the user already typed.

A filter takes the typed text and the candidates and returns the matching
candidates in their original order.
"""

from collections.abc import Callable, Iterable


TokenFilter = Callable[[str, Iterable[str]], list[str]]


def filter_fuzzy(text: str, candidates: Iterable[str]) -> list[str]:
    """Keep candidates containing the characters of text in order, any case."""
    needle = text.lower()
    return [candidate for candidate in candidates if _is_subsequence(needle, candidate.lower())]


def filter_exact_prefix(text: str, candidates: Iterable[str]) -> list[str]:
    return [candidate for candidate in candidates if candidate.startswith(text)]


def filter_none(text: str, candidates: Iterable[str]) -> list[str]:
    return list(candidates)


TOKEN_FILTERS: dict[str, TokenFilter] = {
    "fuzzy": filter_fuzzy,
    "prefix": filter_exact_prefix,
    "none": filter_none,
}


def get_token_filter(name: str) -> TokenFilter:
    """
    Look up a filter by its settings name.

    Raises:
        ValueError: If no filter has that name
    """
    try:
        return TOKEN_FILTERS[name]
    except KeyError:
        known = ", ".join(sorted(TOKEN_FILTERS))
        raise ValueError(f"Unknown token filter {name!r} (expected one of: {known})") from None


def _is_subsequence(needle: str, haystack: str) -> bool:
    remaining = iter(haystack)
    return all(char in remaining for char in needle)
