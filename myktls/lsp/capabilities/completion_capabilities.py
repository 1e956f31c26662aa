"""
Completion capability for mykt documents.

Runs the completion pipeline on the editor's current buffer and maps the
suggestions to LSP completion items.
"""

from __future__ import annotations

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionParams,
    LogMessageParams,
    MessageType,
    ShowMessageParams,
)

from myktls.completion.cursor import CaretPosition
from myktls.completion.pipeline import collect_suggestions
from myktls.completion.suggestions import Suggestion, SuggestionKind
from myktls.lsp.capabilities.capabilities import CompletionCapability
from myktls.settings import ServerSettings
from myktls.utils.paths import LocationDecodeError


ITEM_KINDS = {
    SuggestionKind.KEYWORD: CompletionItemKind.Keyword,
    SuggestionKind.VALUE: CompletionItemKind.Variable,
    SuggestionKind.FUNCTION: CompletionItemKind.Function,
    SuggestionKind.TYPE: CompletionItemKind.Class,
}


def to_completion_item(suggestion: Suggestion) -> CompletionItem:
    return CompletionItem(label=suggestion.label, kind=ITEM_KINDS[suggestion.kind])


class SuggestionCompletionCapability(CompletionCapability):
    """Keyword and symbol completion driven by the grammar."""

    @property
    def name(self) -> str:
        return "suggestion_completion"

    @property
    def description(self) -> str:
        return "Complete keywords valid at the cursor and names declared in the file and its imports"

    async def can_handle(self, params: CompletionParams) -> bool:
        """Every document served by this server is a mykt document."""
        return True

    async def complete(self, params: CompletionParams) -> CompletionList:
        uri = params.text_document.uri
        document = self.server.workspace.get_text_document(uri)
        settings = self.server.settings or ServerSettings()
        # Client characters are UTF-16 units; lark columns count code points.
        position = params.position
        if position.line < len(document.lines):
            position = document.position_codec.position_from_client_units(
                document.lines, position
            )

        try:
            suggestions = collect_suggestions(
                document.source,
                uri,
                CaretPosition.from_lsp(position),
                grammar=self.server.grammar,
                token_filter=settings.token_filter_function,
                warn=self._warn,
                include_operators=settings.include_operators,
            )
        except LocationDecodeError as e:
            self.server.window_show_message(
                ShowMessageParams(type=MessageType.Error, message=str(e))
            )
            raise

        if settings.trace:
            self.server.window_log_message(
                LogMessageParams(
                    type=MessageType.Log,
                    message=f"Completion at {uri}:{params.position.line}:"
                            f"{params.position.character}: {len(suggestions)} candidates",
                )
            )

        return CompletionList(
            is_incomplete=False,
            items=[to_completion_item(suggestion) for suggestion in suggestions],
        )

    def _warn(self, message: str) -> None:
        self.server.window_show_message(
            ShowMessageParams(type=MessageType.Warning, message=message)
        )
        self.server.window_log_message(
            LogMessageParams(type=MessageType.Warning, message=message)
        )
