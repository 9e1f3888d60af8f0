"""Load-time validation for plugin marketplaces and plugin packages."""

from __future__ import annotations

from marketplace_verify.config import DEFAULT_CONFIG, VerifierConfig
from marketplace_verify.errors import (
    ComponentError,
    DuplicateNameError,
    EmptyMarketplaceError,
    InvalidJsonError,
    MalformedHeaderError,
    MalformedVersionError,
    ManifestConflictError,
    MissingFieldError,
    NameMismatchError,
    PathEscapeError,
    SchemaViolationError,
    SourceNotFoundError,
    ValidationError,
)
from marketplace_verify.loader import DocumentListing, list_agents, list_commands, list_skills
from marketplace_verify.models import (
    AgentDefinition,
    Author,
    CommandDefinition,
    MarketplaceManifest,
    PluginManifest,
    PluginReference,
    SkillDefinition,
)
from marketplace_verify.validator import (
    EntryReport,
    MarketplaceReport,
    PluginReport,
    validate_marketplace,
    validate_marketplace_data,
    validate_plugin,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "AgentDefinition",
    "Author",
    "CommandDefinition",
    "ComponentError",
    "DocumentListing",
    "DuplicateNameError",
    "EmptyMarketplaceError",
    "EntryReport",
    "InvalidJsonError",
    "MalformedHeaderError",
    "MalformedVersionError",
    "ManifestConflictError",
    "MarketplaceManifest",
    "MarketplaceReport",
    "MissingFieldError",
    "NameMismatchError",
    "PathEscapeError",
    "PluginManifest",
    "PluginReference",
    "PluginReport",
    "SchemaViolationError",
    "SkillDefinition",
    "SourceNotFoundError",
    "ValidationError",
    "VerifierConfig",
    "list_agents",
    "list_commands",
    "list_skills",
    "validate_marketplace",
    "validate_marketplace_data",
    "validate_plugin",
]
