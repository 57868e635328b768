# tests/test_config.py
"""
Tests for environment-driven configuration and the context source order.
"""
from __future__ import annotations

import pytest

import chronoclip.config as config
from chronoclip.types import HeadingContext, NeighbourParagraph, ParentContext, SelectionContext


class TestRequireSupabaseEnv:
    def test_missing_both(self, monkeypatch):
        monkeypatch.setattr(config, "SUPABASE_URL", None)
        monkeypatch.setattr(config, "SUPABASE_SERVICE_ROLE_KEY", None)
        with pytest.raises(EnvironmentError, match="SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY"):
            config.require_supabase_env()

    def test_present(self, monkeypatch):
        monkeypatch.setattr(config, "SUPABASE_URL", "https://x.supabase.co")
        monkeypatch.setattr(config, "SUPABASE_SERVICE_ROLE_KEY", "secret")
        assert config.require_supabase_env() == ("https://x.supabase.co", "secret")


class TestEnvHelpers:
    def test_int_default(self, monkeypatch):
        monkeypatch.delenv("CHRONOCLIP_TEST_INT", raising=False)
        assert config._env_int("CHRONOCLIP_TEST_INT", 7) == 7

    def test_int_bad_value(self, monkeypatch):
        monkeypatch.setenv("CHRONOCLIP_TEST_INT", "many")
        with pytest.raises(EnvironmentError):
            config._env_int("CHRONOCLIP_TEST_INT", 7)

    def test_list(self, monkeypatch):
        monkeypatch.setenv("CHRONOCLIP_TEST_LIST", " en, ja ,,")
        assert config._env_list("CHRONOCLIP_TEST_LIST", ()) == ("en", "ja")

    def test_defaults(self):
        cfg = config.ExtractionConfig(timezone="Asia/Tokyo")
        assert cfg.default_duration_minutes > 0
        assert cfg.heading_max_hops >= 1


class TestTextSources:
    def test_order_and_empty_dropped(self):
        ctx = SelectionContext(
            normalized_selection="sel",
            heading=HeadingContext(text="head", level=2, distance=1, path="h2"),
            parent=ParentContext(tag="div", qualifiers=[], text="parent", path="div"),
            neighbour_paragraphs=[
                NeighbourParagraph(position="before", tag="p", text="n0", path="p"),
                NeighbourParagraph(position="after", tag="p", text="", path="p"),
                NeighbourParagraph(position="after", tag="p", text="n2", path="p"),
            ],
        )
        assert ctx.text_sources() == [
            ("selection", "sel"),
            ("heading", "head"),
            ("neighbour[0]", "n0"),
            ("neighbour[2]", "n2"),
            ("parent", "parent"),
        ]

    def test_selection_only(self):
        assert SelectionContext().text_sources() == []
