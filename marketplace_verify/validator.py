"""Validate marketplace manifests and the plugin packages they reference.

Validation is collect-all: every function here returns a report holding every
problem found instead of raising on the first one. Files are visited in sorted
order, so validating an unchanged tree twice yields identical reports.

Marketplace layout:
- marketplace.json: name, owner, plugin list (``plugins`` or ``entries``)
- Entry: name, source, strict, descriptive metadata
- Local sources resolve against the marketplace root (the directory holding
  ``.claude-plugin/``), or ``metadata.pluginRoot`` below it when set

Plugin layout:
- .claude-plugin/plugin.json: name, description, version, license (required)
- agents/*.md, skills/<skill>/SKILL.md, commands/*.md with YAML frontmatter
- Components at plugin root, never inside .claude-plugin/

Strictness:
- Entries default to strict (configurable). A strict entry's failures are
  errors that block that entry only.
- A non-strict entry may omit plugin.json (its marketplace entry stands in)
  and its failures are downgraded to warnings.
"""

from __future__ import annotations

import logging
import os.path
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from marketplace_verify.config import DEFAULT_CONFIG, ENTRY_LIST_KEYS, VerifierConfig
from marketplace_verify.errors import (
    ComponentError,
    DuplicateNameError,
    EmptyMarketplaceError,
    MalformedVersionError,
    ManifestConflictError,
    MissingFieldError,
    NameMismatchError,
    SchemaViolationError,
    SourceNotFoundError,
    ValidationError,
)
from marketplace_verify.files import load_json_file, resolve_within
from marketplace_verify.loader import (
    AGENTS_DIR,
    COMMANDS_DIR,
    SKILL_FILE,
    SKILLS_DIR,
    DocumentListing,
    list_agents,
    list_commands,
    list_skills,
)
from marketplace_verify.models import (
    AgentDefinition,
    CommandDefinition,
    Document,
    MarketplaceManifest,
    PluginManifest,
    PluginReference,
    SkillDefinition,
)
from marketplace_verify.schemas import (
    MARKETPLACE_ENTRY_SCHEMA,
    MARKETPLACE_SCHEMA,
    PLUGIN_MANIFEST_SCHEMA,
    is_semver,
    validate_json_schema,
)

logger = logging.getLogger(__name__)

REQUIRED_PLUGIN_FIELDS = ("name", "description", "version", "license")
REQUIRED_ENTRY_FIELDS = ("name", "source")

# Directories that must sit at plugin root, not inside .claude-plugin/
COMPONENT_DIRS = ("commands", "agents", "skills", "hooks")

# Fields that can appear in both a marketplace entry and plugin.json
COMPARABLE_FIELDS = (
    "version",
    "description",
    "author",
    "homepage",
    "repository",
    "license",
    "keywords",
)

# Differences in these are informational only (never fail, even with --strict)
INFO_ONLY_FIELDS = {"author"}


@dataclass
class PluginReport:
    """Outcome of validating one plugin directory."""

    plugin_dir: Path
    manifest: PluginManifest | None = None
    manifest_path: Path | None = None
    agents: list[AgentDefinition] = field(default_factory=list)
    skills: list[SkillDefinition] = field(default_factory=list)
    commands: list[CommandDefinition] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)
    info: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "plugin_dir": str(self.plugin_dir),
            "ok": self.ok,
            "name": self.manifest.name if self.manifest else None,
            "version": self.manifest.version if self.manifest else None,
            "agents": [a.name for a in self.agents],
            "skills": [s.name for s in self.skills],
            "commands": [c.name for c in self.commands],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "info": list(self.info),
        }


@dataclass
class EntryReport:
    """Outcome of validating one marketplace entry and the package it points at."""

    index: int
    reference: PluginReference
    strict: bool
    external: bool = False
    plugin_dir: Path | None = None
    plugin: PluginReport | None = None
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)
    info: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.reference.name or f"entry[{self.index}]"

    @property
    def loadable(self) -> bool:
        """True when nothing blocks the host from loading this entry."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "name": self.reference.name,
            "strict": self.strict,
            "external": self.external,
            "plugin_dir": str(self.plugin_dir) if self.plugin_dir else None,
            "loadable": self.loadable,
            "plugin": self.plugin.to_dict() if self.plugin else None,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "info": list(self.info),
        }


@dataclass
class MarketplaceReport:
    """Outcome of validating a marketplace manifest.

    ``errors`` holds marketplace-level problems only; per-entry problems stay
    on their ``EntryReport``.
    """

    path: Path | None = None
    manifest: MarketplaceManifest | None = None
    errors: list[ValidationError] = field(default_factory=list)
    entries: list[EntryReport] = field(default_factory=list)

    def all_errors(self) -> list[ValidationError]:
        errors = list(self.errors)
        for entry in self.entries:
            errors.extend(entry.errors)
        return errors

    def all_warnings(self) -> list[ValidationError]:
        warnings: list[ValidationError] = []
        for entry in self.entries:
            warnings.extend(entry.warnings)
        return warnings

    def all_info(self) -> list[str]:
        return [msg for entry in self.entries for msg in entry.info]

    @property
    def ok(self) -> bool:
        return not self.all_errors()

    def loadable_entries(self) -> list[EntryReport]:
        return [entry for entry in self.entries if entry.loadable]

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path) if self.path else None,
            "name": self.manifest.name if self.manifest else None,
            "ok": self.ok,
            "errors": [e.to_dict() for e in self.errors],
            "entries": [entry.to_dict() for entry in self.entries],
        }


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def check_required_fields(
    data: dict[str, Any], required: tuple[str, ...], path: Path | None, prefix: str = ""
) -> list[ValidationError]:
    """Report required fields that are absent, null or empty strings."""
    return [
        MissingFieldError(f"{prefix}{name}", path=path)
        for name in required
        if _is_blank(data.get(name))
    ]


def check_version(
    data: dict[str, Any], path: Path | None, field_name: str = "version"
) -> list[ValidationError]:
    version = data.get("version")
    if isinstance(version, str) and version.strip() and not is_semver(version):
        return [MalformedVersionError(version, path=path, field=field_name)]
    return []


def _drop_reported(
    schema_errors: list[SchemaViolationError], reported: list[ValidationError]
) -> list[ValidationError]:
    # A blank required field also fails its pattern; report it once
    seen = {e.field for e in reported if isinstance(e, MissingFieldError)}
    return [e for e in schema_errors if e.field not in seen]


def check_plugin_manifest_data(data: dict[str, Any], path: Path | None) -> list[ValidationError]:
    """Check plugin.json content: required fields, version, then schema."""
    errors = check_required_fields(data, REQUIRED_PLUGIN_FIELDS, path)
    errors.extend(check_version(data, path))
    errors.extend(_drop_reported(validate_json_schema(data, PLUGIN_MANIFEST_SCHEMA, path), errors))
    return errors


def check_component_placement(plugin_dir: Path, config: VerifierConfig) -> list[ValidationError]:
    """Check that components are at plugin root, not in .claude-plugin/."""
    manifest_dir = plugin_dir / config.manifest_dir
    return [
        ComponentError(
            f"{component}/ directory found in {config.manifest_dir}/ but must be at plugin root",
            path=manifest_dir / component,
        )
        for component in COMPONENT_DIRS
        if (manifest_dir / component).exists()
    ]


def check_component_dir(
    plugin_dir: Path, dirname: str
) -> tuple[list[ValidationError], list[ValidationError]]:
    """Check a component directory's shape.

    Returns:
        Tuple of (errors, warnings)
    """
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []
    directory = plugin_dir / dirname

    if not directory.exists():
        return errors, warnings  # Optional component

    if not directory.is_dir():
        errors.append(ComponentError(f"{dirname}/ exists but is not a directory", path=directory))
        return errors, warnings

    if dirname == SKILLS_DIR:
        for skill_path in sorted(d for d in directory.iterdir() if d.is_dir()):
            if not (skill_path / SKILL_FILE).is_file():
                errors.append(
                    ComponentError(f"Missing required {SKILL_FILE} file", path=skill_path)
                )

    if not any(directory.iterdir()):
        warnings.append(ComponentError(f"{dirname}/ directory is empty", path=directory))
    return errors, warnings


def collect_documents(
    listing: DocumentListing[Any],
) -> tuple[list[Document], list[ValidationError]]:
    """Parse every document of a listing and check names are unique."""
    definitions, header_errors = listing.split()
    errors: list[ValidationError] = list(header_errors)

    counts = Counter(d.name for d in definitions)
    reported: set[str] = set()
    for definition in definitions:
        if counts[definition.name] > 1 and definition.name not in reported:
            reported.add(definition.name)
            errors.append(
                DuplicateNameError(definition.name, listing.kind.kind, path=definition.path)
            )
    return definitions, errors


def check_custom_component_paths(
    plugin_dir: Path, data: dict[str, Any], manifest_path: Path | None
) -> list[ValidationError]:
    """Validate custom component paths (``commands``, ``agents``, ``skills``) from plugin.json."""
    errors: list[ValidationError] = []

    for component in (COMMANDS_DIR, AGENTS_DIR, SKILLS_DIR):
        custom: Any = data.get(component)
        if not custom:
            continue
        if isinstance(custom, str):
            paths = [custom]
        elif isinstance(custom, list):
            paths = [p for p in custom if isinstance(p, str)]
        else:
            continue  # Wrong type; reported by the schema
        for path in paths:
            if not path.startswith("./"):
                errors.append(
                    ComponentError(
                        f"Custom {component} path must start with './': {path}",
                        path=manifest_path,
                        field=component,
                    )
                )
                continue
            full_path, error = resolve_within(plugin_dir, path, manifest_path, field=component)
            if error:
                errors.append(error)
            elif full_path is not None and not full_path.exists():
                errors.append(SourceNotFoundError(path, path=manifest_path, field=component))

    return errors


def validate_plugin(
    plugin_dir: Path | str,
    config: VerifierConfig = DEFAULT_CONFIG,
    *,
    require_manifest: bool = True,
    fallback: dict[str, Any] | None = None,
) -> PluginReport:
    """Validate a single plugin's manifest and components.

    Args:
        plugin_dir: Plugin root directory
        config: Layout names and policy
        require_manifest: If True, plugin.json is required. If False, plugin.json
                          is optional and ``fallback`` is used in its place.
        fallback: Marketplace entry data standing in for a missing plugin.json

    Returns:
        PluginReport with every problem found, plus the parsed manifest and
        documents when they could be read
    """
    plugin_dir = Path(plugin_dir)
    report = PluginReport(plugin_dir=plugin_dir)
    logger.debug("Validating plugin %s", plugin_dir)

    if not plugin_dir.is_dir():
        report.errors.append(SourceNotFoundError(str(plugin_dir), path=plugin_dir, field=None))
        return report

    manifest_path = plugin_dir / config.manifest_dir / config.plugin_file
    data: dict[str, Any] = {}

    if require_manifest or manifest_path.exists():
        loaded, load_errors = load_json_file(manifest_path)
        if load_errors:
            report.errors.extend(load_errors)
        elif not isinstance(loaded, dict):
            report.errors.append(
                SchemaViolationError(
                    f"{config.plugin_file} must be a JSON object, got {type(loaded).__name__}",
                    path=manifest_path,
                    field="root",
                )
            )
        else:
            data = loaded
            report.manifest_path = manifest_path
            report.errors.extend(check_plugin_manifest_data(data, manifest_path))
    else:
        # Marketplace entry stands in for plugin.json; it was checked as an entry
        data = dict(fallback or {})
        report.info.append(f"No {config.plugin_file}; using marketplace entry metadata")

    if not _is_blank(data.get("name")):
        report.manifest = PluginManifest.from_dict(data)

    if config.warn_missing_readme and not (plugin_dir / "README.md").exists():
        report.warnings.append(ComponentError("Missing README.md", path=plugin_dir))

    report.errors.extend(check_component_placement(plugin_dir, config))

    for dirname in (AGENTS_DIR, SKILLS_DIR, COMMANDS_DIR):
        dir_errors, dir_warnings = check_component_dir(plugin_dir, dirname)
        report.errors.extend(dir_errors)
        report.warnings.extend(dir_warnings)

    agents, agent_errors = collect_documents(list_agents(plugin_dir))
    skills, skill_errors = collect_documents(list_skills(plugin_dir))
    commands, command_errors = collect_documents(list_commands(plugin_dir))
    report.agents = [d for d in agents if isinstance(d, AgentDefinition)]
    report.skills = [d for d in skills if isinstance(d, SkillDefinition)]
    report.commands = [d for d in commands if isinstance(d, CommandDefinition)]
    report.errors.extend(agent_errors + skill_errors + command_errors)

    report.errors.extend(check_custom_component_paths(plugin_dir, data, report.manifest_path))

    logger.debug(
        "Plugin %s: %d error(s), %d warning(s)",
        plugin_dir.name,
        len(report.errors),
        len(report.warnings),
    )
    return report


def check_manifest_conflicts(
    marketplace_entry: dict[str, Any], plugin_data: dict[str, Any], path: Path | None
) -> tuple[list[ValidationError], list[str]]:
    """Detect conflicts between a marketplace entry and plugin.json.

    Returns:
        Tuple of (warnings, info_only). Warnings fail under --strict, info_only
        never does (e.g., author field differences).
    """
    warnings: list[ValidationError] = []
    info_only: list[str] = []

    for name in COMPARABLE_FIELDS:
        market_value: Any = marketplace_entry.get(name)
        plugin_value: Any = plugin_data.get(name)

        if market_value is None or plugin_value is None:
            continue

        # Keywords are order-insensitive
        if isinstance(market_value, list) and isinstance(plugin_value, list):
            market_value = sorted(map(str, market_value))
            plugin_value = sorted(map(str, plugin_value))

        if market_value == plugin_value:
            continue

        message = (
            f"Conflict in '{name}' - marketplace: {market_value!r}, "
            f"plugin.json: {plugin_value!r} (plugin.json takes precedence)"
        )
        if name in INFO_ONLY_FIELDS:
            info_only.append(message)
        else:
            warnings.append(ManifestConflictError(message, path=path, field=name))

    return warnings, info_only


def marketplace_root(manifest_path: Path, config: VerifierConfig = DEFAULT_CONFIG) -> Path:
    """Directory that entry sources are relative to."""
    parent = manifest_path.parent
    if parent.name == config.manifest_dir:
        return parent.parent
    return parent


def _resolve_source(
    source: str,
    base_dir: Path,
    manifest_path: Path | None,
    field_name: str,
    config: VerifierConfig,
) -> tuple[Path | None, ValidationError | None]:
    if os.path.isabs(source):
        return Path(os.path.normpath(source)), None

    resolved, error = resolve_within(base_dir, source, manifest_path, field=field_name)
    if error and config.allow_outside_root:
        return Path(os.path.normpath(os.path.join(str(base_dir.resolve()), source))), None
    return resolved, error


def validate_entry(
    index: int,
    raw: Any,
    base_dir: Path,
    config: VerifierConfig = DEFAULT_CONFIG,
    *,
    manifest_path: Path | None = None,
    entries_key: str = "plugins",
) -> EntryReport:
    """Validate one marketplace entry and, for local sources, its package."""
    prefix = f"{entries_key}[{index}]"
    reference = PluginReference.from_dict(raw if isinstance(raw, dict) else {})
    strict = reference.strict if reference.strict is not None else config.default_strict
    entry = EntryReport(index=index, reference=reference, strict=strict)

    problems: list[ValidationError] = []
    warnings: list[ValidationError] = []

    if not isinstance(raw, dict):
        problems.append(
            SchemaViolationError(
                f"Entry must be a JSON object, got {type(raw).__name__}",
                path=manifest_path,
                field=prefix,
            )
        )
        entry.errors = problems
        return entry

    checks = check_required_fields(raw, REQUIRED_ENTRY_FIELDS, manifest_path, prefix=f"{prefix}.")
    checks.extend(check_version(raw, manifest_path, field_name=f"{prefix}.version"))
    schema_errors = validate_json_schema(raw, MARKETPLACE_ENTRY_SCHEMA, manifest_path, prefix)
    checks.extend(_drop_reported(schema_errors, checks))
    problems.extend(checks)

    source: Any = raw.get("source")
    source_field = f"{prefix}.source"

    if isinstance(source, dict) and "repo" not in source and "url" not in source:
        problems.append(
            SchemaViolationError(
                "Object source must name a 'repo' or 'url'",
                path=manifest_path,
                field=source_field,
            )
        )
    elif isinstance(source, (str, dict)) and reference.is_external:
        entry.external = True
        entry.info.append("External source; not validated locally")
    elif isinstance(source, str) and source.strip():
        plugin_dir, error = _resolve_source(source, base_dir, manifest_path, source_field, config)
        if error:
            problems.append(error)
        elif plugin_dir is None or not plugin_dir.is_dir():
            problems.append(SourceNotFoundError(source, path=manifest_path, field=source_field))
        else:
            entry.plugin_dir = plugin_dir
            plugin = validate_plugin(plugin_dir, config, require_manifest=strict, fallback=raw)
            entry.plugin = plugin
            problems.extend(plugin.errors)
            warnings.extend(plugin.warnings)
            entry.info.extend(plugin.info)

            if plugin.manifest_path is not None and plugin.manifest is not None:
                if reference.name and plugin.manifest.name != reference.name:
                    problems.append(
                        NameMismatchError(
                            reference.name, plugin.manifest.name, path=plugin.manifest_path
                        )
                    )
                conflict_warnings, conflict_info = check_manifest_conflicts(
                    raw, plugin.manifest.raw, plugin.manifest_path
                )
                warnings.extend(conflict_warnings)
                entry.info.extend(conflict_info)

    if strict:
        entry.errors = problems
        entry.warnings = warnings
    else:
        # Non-strict entries never block loading
        entry.warnings = problems + warnings

    logger.debug(
        "Entry %s (strict=%s): %d error(s), %d warning(s)",
        entry.name,
        strict,
        len(entry.errors),
        len(entry.warnings),
    )
    return entry


def validate_marketplace_data(
    data: Any,
    base_dir: Path,
    config: VerifierConfig = DEFAULT_CONFIG,
    *,
    path: Path | None = None,
) -> MarketplaceReport:
    """Validate parsed marketplace.json content.

    Args:
        data: Parsed marketplace.json content
        base_dir: Directory local sources are relative to
        config: Layout names and policy
        path: File the data was read from, for error messages

    Returns:
        MarketplaceReport with one EntryReport per listed entry, in order
    """
    report = MarketplaceReport(path=path)
    base_dir = Path(base_dir)

    if not isinstance(data, dict):
        report.errors.append(
            SchemaViolationError(
                f"Marketplace manifest must be a JSON object, got {type(data).__name__}",
                path=path,
                field="root",
            )
        )
        return report

    errors = check_required_fields(data, ("name",), path)

    present = [key for key in ENTRY_LIST_KEYS if key in data]
    entries_key = present[0] if present else ENTRY_LIST_KEYS[0]
    if not present:
        errors.append(MissingFieldError(entries_key, path=path))
    elif len(present) > 1:
        errors.append(
            SchemaViolationError(
                f"Use one of {', '.join(repr(k) for k in ENTRY_LIST_KEYS)}, not both",
                path=path,
                field=present[1],
            )
        )

    metadata = data.get("metadata")
    if isinstance(metadata, dict):
        errors.extend(check_version(metadata, path, field_name="metadata.version"))

    errors.extend(_drop_reported(validate_json_schema(data, MARKETPLACE_SCHEMA, path), errors))

    raw_entries: Any = data.get(entries_key)
    if present and isinstance(raw_entries, list) and not raw_entries:
        errors.append(
            EmptyMarketplaceError("Marketplace lists no plugins", path=path, field=entries_key)
        )
    if not isinstance(raw_entries, list):
        raw_entries = []

    names = Counter(
        e["name"] for e in raw_entries if isinstance(e, dict) and isinstance(e.get("name"), str)
    )
    for name, count in sorted(names.items()):
        if count > 1:
            errors.append(DuplicateNameError(name, "plugin", path=path))

    report.manifest = MarketplaceManifest.from_dict(
        {**data, entries_key: raw_entries}, entries_key=entries_key, path=path
    )

    source_root = base_dir
    plugin_root = report.manifest.plugin_root
    if isinstance(plugin_root, str) and plugin_root:
        resolved, error = resolve_within(base_dir, plugin_root, path, field="metadata.pluginRoot")
        if error:
            errors.append(error)
        elif resolved is not None:
            source_root = resolved

    report.errors = errors

    for index, raw in enumerate(raw_entries):
        report.entries.append(
            validate_entry(
                index,
                raw,
                source_root,
                config,
                manifest_path=path,
                entries_key=entries_key,
            )
        )

    logger.debug(
        "Marketplace %s: %d entr(ies), %d error(s)",
        report.manifest.name,
        len(report.entries),
        len(report.all_errors()),
    )
    return report


def validate_marketplace(
    path: Path | str, config: VerifierConfig = DEFAULT_CONFIG
) -> MarketplaceReport:
    """Load and validate a marketplace manifest.

    Args:
        path: marketplace.json, or a directory holding .claude-plugin/marketplace.json
        config: Layout names and policy
    """
    path = Path(path)
    if path.is_dir():
        path = path / config.manifest_dir / config.marketplace_file

    data, errors = load_json_file(path)
    if errors:
        return MarketplaceReport(path=path, errors=errors)

    return validate_marketplace_data(data, marketplace_root(path, config), config, path=path)
