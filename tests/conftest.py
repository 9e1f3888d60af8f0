"""Pytest configuration for marketplace-verify tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

AGENT_TEMPLATE = """---
name: {name}
description: {description}
model: sonnet
---

You are {name}. Review the code you are given.
"""

SKILL_TEMPLATE = """---
name: {name}
description: {description}
---

# {name}

Reference material.
"""


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def plugin_manifest(name: str, /, **overrides: Any) -> dict[str, Any]:
    """A complete, valid plugin.json body."""
    data: dict[str, Any] = {
        "name": name,
        "description": f"The {name} plugin",
        "version": "1.0.0",
        "author": {"name": "Jane Doe", "email": "jane@example.com"},
        "license": "MIT",
        "keywords": ["review", "testing"],
    }
    data.update(overrides)
    return data


def make_plugin(
    root: Path,
    name: str,
    *,
    manifest: dict[str, Any] | None = None,
    agents: dict[str, str] | None = None,
    skills: dict[str, str] | None = None,
    readme: bool = True,
) -> Path:
    """Create a plugin directory under root/plugins/<name>.

    Args:
        root: Marketplace root
        name: Directory name (and default manifest name)
        manifest: plugin.json body; defaults to a valid manifest named ``name``
        agents: File name -> file content for agents/
        skills: Skill directory name -> SKILL.md content
        readme: Write a README.md
    """
    plugin_dir = root / "plugins" / name
    write_json(plugin_dir / ".claude-plugin" / "plugin.json", manifest or plugin_manifest(name))
    if readme:
        (plugin_dir / "README.md").write_text(f"# {name}\n", encoding="utf-8")
    for filename, content in (agents or {}).items():
        agent_path = plugin_dir / "agents" / filename
        agent_path.parent.mkdir(parents=True, exist_ok=True)
        agent_path.write_text(content, encoding="utf-8")
    for skill_name, content in (skills or {}).items():
        skill_path = plugin_dir / "skills" / skill_name / "SKILL.md"
        skill_path.parent.mkdir(parents=True, exist_ok=True)
        skill_path.write_text(content, encoding="utf-8")
    return plugin_dir


def marketplace_entry(name: str, /, **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": name,
        "source": f"./plugins/{name}",
        "description": f"The {name} plugin",
        "version": "1.0.0",
        "author": {"name": "Jane Doe"},
        "license": "MIT",
        "keywords": ["testing", "review"],
        "category": "development",
        "strict": True,
    }
    data.update(overrides)
    return data


def make_marketplace(root: Path, entries: list[Any], name: str = "m", key: str = "plugins") -> Path:
    return write_json(
        root / ".claude-plugin" / "marketplace.json",
        {"name": name, "owner": {"name": "Jane Doe"}, key: entries},
    )


@pytest.fixture
def agent_md() -> Callable[..., str]:
    def render(name: str, description: str = "Reviews code") -> str:
        return AGENT_TEMPLATE.format(name=name, description=description)

    return render


@pytest.fixture
def skill_md() -> Callable[..., str]:
    def render(name: str, description: str = "Reference guide") -> str:
        return SKILL_TEMPLATE.format(name=name, description=description)

    return render


@pytest.fixture
def valid_marketplace(tmp_path: Path) -> Path:
    """A marketplace with one valid plugin 'a'; returns marketplace.json path."""
    make_plugin(
        tmp_path,
        "a",
        agents={"reviewer.md": AGENT_TEMPLATE.format(name="reviewer", description="Reviews")},
        skills={"style": SKILL_TEMPLATE.format(name="style", description="Style guide")},
    )
    return make_marketplace(tmp_path, [marketplace_entry("a")])
