from __future__ import annotations

from dataclasses import dataclass

from lsprotocol.types import ClientCapabilities


@dataclass(frozen=True)
class ClientFlags:
    """Client features the server adapts to, fixed at initialize time."""

    configuration: bool = False
    workspace_folders: bool = False
    diagnostic_related_information: bool = False

    @classmethod
    def from_capabilities(cls, capabilities: ClientCapabilities | None) -> ClientFlags:
        if capabilities is None:
            return cls()

        workspace = capabilities.workspace
        text_document = capabilities.text_document
        publish_diagnostics = text_document.publish_diagnostics if text_document else None

        return cls(
            configuration=bool(workspace and workspace.configuration),
            workspace_folders=bool(workspace and workspace.workspace_folders),
            diagnostic_related_information=bool(
                publish_diagnostics and publish_diagnostics.related_information
            ),
        )
