"""Tests for manifest models."""

from __future__ import annotations

from marketplace_verify.models import Author, MarketplaceManifest, PluginManifest, PluginReference


class TestPluginReference:
    """Tests for PluginReference."""

    def test_from_dict(self) -> None:
        """Should map entry fields onto the reference."""
        ref = PluginReference.from_dict(
            {
                "name": "a",
                "source": "./plugins/a",
                "keywords": ["x", "y"],
                "author": {"name": "Jane"},
                "strict": False,
            }
        )
        assert ref.name == "a"
        assert ref.keywords == ("x", "y")
        assert ref.author == Author(name="Jane")
        assert ref.strict is False
        assert not ref.is_external

    def test_tolerates_bad_types(self) -> None:
        """Should not raise on mistyped fields."""
        ref = PluginReference.from_dict({"name": None, "keywords": 5, "strict": "yes"})
        assert ref.name == ""
        assert ref.keywords == ()
        assert ref.strict is None

    def test_external_sources(self) -> None:
        """Should treat URLs and object sources as external."""
        assert PluginReference.from_dict({"source": "https://example.com/a.git"}).is_external
        github = {"source": "github", "repo": "a/b"}
        assert PluginReference.from_dict({"source": github}).is_external


class TestMarketplaceManifest:
    """Tests for MarketplaceManifest."""

    def test_reads_metadata(self) -> None:
        """Should take version and pluginRoot from metadata."""
        manifest = MarketplaceManifest.from_dict(
            {
                "name": "m",
                "metadata": {"version": "1.0.0", "pluginRoot": "./plugins"},
                "plugins": [{"name": "a", "source": "./a"}, "junk"],
            }
        )
        assert manifest.version == "1.0.0"
        assert manifest.plugin_root == "./plugins"
        assert [e.name for e in manifest.entries] == ["a", ""]

    def test_alternate_entries_key(self) -> None:
        """Should read entries from the given key."""
        manifest = MarketplaceManifest.from_dict(
            {"name": "m", "entries": [{"name": "a"}]}, entries_key="entries"
        )
        assert len(manifest.entries) == 1

    def test_non_list_entries(self) -> None:
        """Should produce no entries when the list is mistyped."""
        assert MarketplaceManifest.from_dict({"plugins": {"a": 1}}).entries == ()


class TestPluginManifest:
    """Tests for PluginManifest."""

    def test_from_dict(self) -> None:
        """Should keep the raw data for later comparison."""
        data = {"name": "a", "description": "d", "version": "1.0.0", "license": "MIT"}
        manifest = PluginManifest.from_dict(data)
        assert manifest.name == "a"
        assert manifest.author is None
        assert manifest.raw == data
