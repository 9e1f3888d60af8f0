"""Verifier configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace

# Marketplace and plugin manifests live in this directory, never components
MANIFEST_DIR = ".claude-plugin"

# Hosts disagree on the key holding the plugin list; both are accepted
ENTRY_LIST_KEYS = ("plugins", "entries")


@dataclass(frozen=True)
class VerifierConfig:
    """Layout names and policy defaults for a verification run.

    Attributes:
        manifest_dir: Directory holding marketplace.json / plugin.json
        marketplace_file: Marketplace manifest file name
        plugin_file: Plugin manifest file name
        default_strict: Strictness of entries that do not set ``strict``
        allow_outside_root: Allow relative sources that leave the marketplace root
        warn_missing_readme: Warn when a plugin has no README.md
    """

    manifest_dir: str = MANIFEST_DIR
    marketplace_file: str = "marketplace.json"
    plugin_file: str = "plugin.json"
    default_strict: bool = True
    allow_outside_root: bool = False
    warn_missing_readme: bool = True

    def with_overrides(self, **changes: object) -> VerifierConfig:
        """Return a copy with the given fields replaced (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


DEFAULT_CONFIG = VerifierConfig()
