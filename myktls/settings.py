"""
Server settings.

Settings come from, in increasing precedence:

1. Defaults
2. `.myktls.yml` in the workspace root
3. `initializationOptions` sent by the client
4. The `myktls` section of `workspace/didChangeConfiguration`

Example `.myktls.yml`:

    token_filter: prefix
    include_operators: false
    trace: true
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from myktls.completion.filters import TokenFilter, get_token_filter


SETTINGS_FILE = ".myktls.yml"
SETTINGS_SECTION = "myktls"


@dataclass(frozen=True)
class ServerSettings:
    token_filter: str = "fuzzy"
    include_operators: bool = False
    trace: bool = False

    def __post_init__(self) -> None:
        # Fail on load rather than on the first completion request.
        get_token_filter(self.token_filter)

    @property
    def token_filter_function(self) -> TokenFilter:
        return get_token_filter(self.token_filter)

    def merged_with(self, data: Mapping[str, Any] | None) -> ServerSettings:
        """New settings with the known keys of data applied."""
        if not data:
            return self
        known = {f.name for f in fields(self)}
        changes = {key: value for key, value in data.items() if key in known}
        return replace(self, **changes)


def load_settings(
    workspace_root: Path | None,
    initialization_options: Mapping[str, Any] | None = None,
) -> ServerSettings:
    """
    Build settings from the workspace file and the client's options.

    Raises:
        yaml.YAMLError: If the settings file is not valid YAML
        ValueError: If a setting has an invalid value
    """
    settings = ServerSettings()

    if workspace_root is not None:
        settings_file = workspace_root / SETTINGS_FILE
        if settings_file.is_file():
            with open(settings_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            if isinstance(data, Mapping):
                settings = settings.merged_with(data)

    options = initialization_options or {}
    section = options.get(SETTINGS_SECTION, options) if isinstance(options, Mapping) else None
    if isinstance(section, Mapping):
        settings = settings.merged_with(section)

    return settings
