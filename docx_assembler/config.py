"""Engine settings with defaults pointing at the bundled sample assets."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from docx_assembler.assembly.assembler import DEFAULT_MAX_DEPTH, DEFAULT_MAX_NODES
from docx_assembler.errors import ConfigurationError

ASSETS_DIR = Path(__file__).resolve().parent / "assets"

ENV_SHELL_PATH = "DOCGEN_SHELL_PATH"
ENV_COMPONENTS_DIR = "DOCGEN_COMPONENTS_DIR"
ENV_RULES_PATH = "DOCGEN_RULES_PATH"
ENV_MAX_DEPTH = "DOCGEN_MAX_DEPTH"
ENV_MAX_NODES = "DOCGEN_MAX_NODES"


@dataclass(frozen=True)
class EngineSettings:
    """Locations of the startup assets plus assembly limits."""

    shell_path: Path = ASSETS_DIR / "shell" / "template_shell.docx"
    components_dir: Path = ASSETS_DIR / "components"
    rules_path: Path = ASSETS_DIR / "schemas" / "rules.json"
    max_depth: int = DEFAULT_MAX_DEPTH
    max_nodes: int = DEFAULT_MAX_NODES

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """Overlay ``DOCGEN_*`` environment variables on the defaults."""
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get(ENV_SHELL_PATH):
            settings = replace(settings, shell_path=Path(env[ENV_SHELL_PATH]))
        if env.get(ENV_COMPONENTS_DIR):
            settings = replace(settings, components_dir=Path(env[ENV_COMPONENTS_DIR]))
        if env.get(ENV_RULES_PATH):
            settings = replace(settings, rules_path=Path(env[ENV_RULES_PATH]))
        if env.get(ENV_MAX_DEPTH):
            settings = replace(settings, max_depth=_positive_int(ENV_MAX_DEPTH, env[ENV_MAX_DEPTH]))
        if env.get(ENV_MAX_NODES):
            settings = replace(settings, max_nodes=_positive_int(ENV_MAX_NODES, env[ENV_MAX_NODES]))
        return settings

    def with_overrides(self, **overrides: object) -> "EngineSettings":
        """Return a copy with every non-``None`` override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        for key in ("shell_path", "components_dir", "rules_path"):
            if key in changes:
                changes[key] = Path(changes[key])  # type: ignore[arg-type]
        return replace(self, **changes)


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value
