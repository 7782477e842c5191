"""Tests for src/site_config.py — SiteConfigStore."""

from unittest.mock import MagicMock, patch

import pytest
import yaml

from hexo_buddy.errors import ConfigReadError, ConfigValueError, ConfigWriteError
from hexo_buddy.site_config import SiteConfigStore
from hexo_buddy.themes import ThemeRegistry


@pytest.fixture
def store(tmp_path) -> SiteConfigStore:
    return SiteConfigStore(tmp_path)


class TestRead:
    def test_missing_file_returns_none(self, store):
        assert store.read() is None

    def test_reads_mapping(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("title: My Blog\nauthor: Ann\n")
        assert store.read() == {"title": "My Blog", "author": "Ann"}

    def test_empty_file_reads_as_empty_mapping(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("")
        assert store.read() == {}

    def test_invalid_yaml_raises(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("title: [unclosed\n")
        with pytest.raises(ConfigReadError):
            store.read()

    def test_impossible_date_raises(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("title: Blog\nupdated: 2024-02-30\n")
        with pytest.raises(ConfigReadError):
            store.read()

    def test_impossible_date_surfaces_through_theme_lookup(self, tmp_path):
        (tmp_path / "_config.yml").write_text("theme: next\nupdated: 2024-02-30\n")
        with pytest.raises(ConfigReadError):
            ThemeRegistry(tmp_path).current_theme()

    def test_non_mapping_raises(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigReadError, match="mapping"):
            store.read()

    def test_get_with_default(self, store, tmp_path):
        assert store.get("title", "none") == "none"
        (tmp_path / "_config.yml").write_text("title: Blog\n")
        assert store.get("title") == "Blog"
        assert store.get("missing", 3) == 3


class TestWrite:
    def test_creates_file_when_absent(self, store, tmp_path):
        store.write({"title": "New"})
        data = yaml.safe_load((tmp_path / "_config.yml").read_text())
        assert data == {"title": "New"}

    def test_merge_keeps_both_keys(self, store):
        store.write({"a": 1})
        store.write({"b": 2})
        assert store.read() == {"a": 1, "b": 2}

    def test_later_write_overwrites_key(self, store):
        store.write({"a": 1})
        store.write({"a": 2})
        assert store.read() == {"a": 2}

    def test_unspecified_keys_survive(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text(
            "title: Blog\ndeploy:\n  type: git\n  repo: git@example.com:me/me.git\n"
        )
        store.write({"author": "Ann"})
        data = store.read()
        assert data["deploy"] == {"type": "git", "repo": "git@example.com:me/me.git"}
        assert data["title"] == "Blog"
        assert data["author"] == "Ann"

    def test_shallow_merge_replaces_nested_mapping(self, store):
        store.write({"deploy": {"type": "git", "branch": "main"}})
        store.write({"deploy": {"type": "rsync"}})
        assert store.read()["deploy"] == {"type": "rsync"}

    def test_preserves_key_order(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("title: Blog\nurl: http://x\ntheme: next\n")
        store.write({"url": "https://y"})
        text = (tmp_path / "_config.yml").read_text()
        assert text.index("title") < text.index("url") < text.index("theme")

    def test_returns_merged_document(self, store):
        store.write({"a": 1})
        assert store.write({"b": True}) == {"a": 1, "b": True}

    def test_unicode_written_verbatim(self, store, tmp_path):
        store.write({"title": "我的博客"})
        assert "我的博客" in (tmp_path / "_config.yml").read_text(encoding="utf-8")

    def test_rejects_unsupported_value(self, store, tmp_path):
        with pytest.raises(ConfigValueError):
            store.write({"when": object()})
        assert not (tmp_path / "_config.yml").exists()

    def test_write_failure_raises_and_keeps_original(self, store, tmp_path):
        (tmp_path / "_config.yml").write_text("title: Old\n")
        with patch("hexo_buddy.site_config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(ConfigWriteError, match="disk full"):
                store.write({"title": "New"})
        assert store.read() == {"title": "Old"}

    def test_on_saved_called_with_merged(self, tmp_path):
        hook = MagicMock()
        store = SiteConfigStore(tmp_path, on_saved=hook)
        store.write({"a": 1})
        store.write({"b": 2})
        hook.assert_called_with({"a": 1, "b": 2})
        assert hook.call_count == 2

    def test_on_saved_not_called_on_failure(self, tmp_path):
        hook = MagicMock()
        store = SiteConfigStore(tmp_path, on_saved=hook)
        with pytest.raises(ConfigValueError):
            store.write({"bad": {1, 2}})
        hook.assert_not_called()


class TestLanguage:
    @pytest.mark.parametrize("lang", ["zh-CN", "en-US"])
    def test_supported(self, store, lang):
        store.set_language(lang)
        assert store.get("pluginLanguage") == lang

    def test_unsupported(self, store):
        with pytest.raises(ConfigValueError, match="fr-FR"):
            store.set_language("fr-FR")
        assert store.read() is None
