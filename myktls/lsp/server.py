import uuid
from pathlib import Path

import yaml
from lsprotocol.types import (
    COMPLETION_ITEM_RESOLVE,
    INITIALIZE,
    INITIALIZED,
    TEXT_DOCUMENT_COMPLETION,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS,
    CompletionItem,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DidChangeConfigurationParams,
    DidChangeWorkspaceFoldersParams,
    InitializedParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    Registration,
    RegistrationParams,
)

from myktls.lsp.capabilities.capabilities import CapabilityManager
from myktls.lsp.client_flags import ClientFlags
from myktls.lsp.mykt_language_server import MyktLanguageServer
from myktls.settings import SETTINGS_SECTION, ServerSettings, load_settings
from myktls.utils.paths import resolve_document_path


def initial_settings(ls: MyktLanguageServer, params: InitializeParams) -> ServerSettings:
    """Settings for the workspace in params, or the defaults if they cannot be read."""
    try:
        workspace_root = None
        if params.root_uri:
            workspace_root = Path(resolve_document_path(params.root_uri))
        elif params.root_path:
            workspace_root = Path(params.root_path)
        return load_settings(workspace_root, params.initialization_options)
    except (OSError, ValueError, yaml.YAMLError) as e:
        ls.window_log_message(
            LogMessageParams(MessageType.Error, f"Invalid myktls settings, using defaults: {e}")
        )
        return ServerSettings()


def create_server() -> MyktLanguageServer:
    """
    Creates and returns a configured Language Server instance.

    The LanguageServer class from pygls handles:
    - JSON-RPC communication with clients (editors)
    - Request/response lifecycle
    - Text document synchronization
    """
    server = MyktLanguageServer("myktls", "0.1.0")

    server.capability_manager = CapabilityManager(server)

    @server.feature(INITIALIZE)
    async def initialize(ls: MyktLanguageServer, params: InitializeParams):
        """
        Record what the client supports and load settings.
        """
        ls.client_flags = ClientFlags.from_capabilities(params.capabilities)

        ls.settings = initial_settings(ls, params)
        ls.window_log_message(
            LogMessageParams(
                MessageType.Info, f"Using {ls.settings.token_filter} token filter"
            )
        )

    @server.feature(INITIALIZED)
    async def initialized(ls: MyktLanguageServer, params: InitializedParams):
        if ls.client_flags and ls.client_flags.configuration:
            # Register for all configuration changes.
            ls.client_register_capability(
                RegistrationParams(
                    registrations=[
                        Registration(
                            id=str(uuid.uuid4()),
                            method=WORKSPACE_DID_CHANGE_CONFIGURATION,
                        )
                    ]
                )
            )

    @server.feature(WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
    async def did_change_workspace_folders(
        ls: MyktLanguageServer, params: DidChangeWorkspaceFoldersParams
    ):
        ls.window_log_message(
            LogMessageParams(MessageType.Log, "Workspace folder change event received.")
        )

    @server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
    async def did_change_configuration(
        ls: MyktLanguageServer, params: DidChangeConfigurationParams
    ):
        section = None
        if isinstance(params.settings, dict):
            section = params.settings.get(SETTINGS_SECTION)
        if not isinstance(section, dict):
            return

        try:
            ls.settings = ls.settings.merged_with(section)
        except ValueError as e:
            ls.window_log_message(
                LogMessageParams(MessageType.Error, f"Ignoring invalid myktls settings: {e}")
            )
            return

        ls.window_log_message(
            LogMessageParams(MessageType.Info, "myktls settings updated")
        )

    # Register aggregated handlers
    @server.feature(
        TEXT_DOCUMENT_COMPLETION, CompletionOptions(resolve_provider=True)
    )
    async def completion(ls: MyktLanguageServer, params: CompletionParams):
        if ls.capability_manager:
            return await ls.capability_manager.handle_completion(params)
        return CompletionList(is_incomplete=False, items=[])

    @server.feature(COMPLETION_ITEM_RESOLVE)
    async def completion_resolve(ls: MyktLanguageServer, item: CompletionItem):
        if ls.capability_manager:
            return await ls.capability_manager.resolve_completion_item(item)
        return item

    return server
