from __future__ import annotations

from pygls.lsp.server import LanguageServer

from myktls.grammar.parser import MyktGrammar, get_grammar
from myktls.lsp.capabilities.capabilities import CapabilityManager
from myktls.lsp.client_flags import ClientFlags
from myktls.settings import ServerSettings


class MyktLanguageServer(LanguageServer):
    """
    Custom Language Server with mykt-specific attributes.

    Attributes:
        grammar: Compiled mykt grammar, shared by all requests
        client_flags: Client features, set once during initialize
        settings: Current settings, replaced as a whole on change
        capability_manager: Dispatches requests to capabilities
    """

    def __init__(self, name: str, version: str):
        super().__init__(name, version)

        self.grammar: MyktGrammar = get_grammar()
        self.client_flags: ClientFlags | None = None
        self.settings: ServerSettings = ServerSettings()
        self.capability_manager: CapabilityManager | None = None
