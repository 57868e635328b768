# tests/test_rule_store.py
"""
Unit tests for the user-rule persistence stores.
Supabase is never contacted; the client is a MagicMock.
"""
from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from chronoclip.errors import RuleStoreUnavailable
from chronoclip.rules.registry import RuleRegistry
from chronoclip.rules.store import JsonFileRuleStore, SupabaseRuleStore


class TestJsonFileRuleStore:
    def test_missing_file_reads_empty(self, tmp_path):
        assert JsonFileRuleStore(str(tmp_path / "rules.json")).get() == []

    def test_put_then_get(self, tmp_path):
        path = tmp_path / "rules.json"
        store = JsonFileRuleStore(str(path))
        store.put([{"domain": "example.com", "priority": 3}])

        assert store.get() == [{"domain": "example.com", "priority": 3}]
        assert not (tmp_path / "rules.json.tmp").exists()

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RuleStoreUnavailable):
            JsonFileRuleStore(str(path)).get()

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"domain": "example.com"}), encoding="utf-8")
        with pytest.raises(RuleStoreUnavailable):
            JsonFileRuleStore(str(path)).get()

    def test_non_dict_entries_dropped(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([{"domain": "a.example"}, "junk", 3]), encoding="utf-8")
        assert JsonFileRuleStore(str(path)).get() == [{"domain": "a.example"}]

    def test_unwritable_location(self, tmp_path):
        store = JsonFileRuleStore(str(tmp_path / "missing-dir" / "rules.json"))
        with pytest.raises(RuleStoreUnavailable):
            store.put([])

    def test_registry_survives_restart(self, tmp_path):
        path = str(tmp_path / "rules.json")
        first = RuleRegistry(store=JsonFileRuleStore(path))
        first.add_rule("www.example.com", {"priority": 4, "selectors": {"title": ".headline"}})

        second = RuleRegistry(store=JsonFileRuleStore(path))
        assert second.load() is True
        rule = second.resolve_rule("example.com")
        assert rule.origin == "user"
        assert rule.selector("title") == ".headline"


def _client(existing=None):
    client = MagicMock()
    table = MagicMock()
    client.table.return_value = table
    table.select.return_value = table
    table.delete.return_value = table
    table.in_.return_value = table
    table.upsert.return_value = table
    table.execute.return_value = MagicMock(data=existing or [])
    return client, table


class TestSupabaseRuleStore:
    def test_get(self):
        client, table = _client([{"domain": "example.com", "priority": 3}])
        rows = SupabaseRuleStore(client=client).get()

        client.table.assert_called_with("site_rules")
        table.select.assert_called_once_with(SupabaseRuleStore.COLUMNS)
        assert rows == [{"domain": "example.com", "priority": 3}]

    def test_put_upserts_and_deletes_removed_domains(self):
        client, table = _client([{"domain": "old.example"}, {"domain": "example.com"}])
        rules = [{"domain": "example.com", "priority": 3}]
        SupabaseRuleStore(client=client).put(rules)

        table.delete.assert_called_once()
        table.in_.assert_called_once_with("domain", ["old.example"])
        table.upsert.assert_called_once_with(rules, on_conflict="domain")

    def test_put_nothing_removed(self):
        client, table = _client([{"domain": "example.com"}])
        SupabaseRuleStore(client=client).put([{"domain": "example.com"}])
        table.delete.assert_not_called()

    def test_put_empty_deletes_all(self):
        client, table = _client([{"domain": "a.example"}, {"domain": "b.example"}])
        SupabaseRuleStore(client=client).put([])
        table.in_.assert_called_once_with("domain", ["a.example", "b.example"])
        table.upsert.assert_not_called()

    def test_api_error_becomes_store_unavailable(self):
        client, table = _client()
        table.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})
        with pytest.raises(RuleStoreUnavailable):
            SupabaseRuleStore(client=client).get()

    def test_network_error_becomes_store_unavailable(self):
        client, table = _client()
        table.execute.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(RuleStoreUnavailable):
            SupabaseRuleStore(client=client).put([{"domain": "example.com"}])

    def test_registry_keeps_last_good_on_supabase_outage(self):
        client, table = _client([{"domain": "example.com", "priority": 3}])
        reg = RuleRegistry(store=SupabaseRuleStore(client=client))
        assert reg.load() is True

        table.execute.side_effect = httpx.ConnectError("connection refused")
        assert reg.load() is False
        assert reg.resolve_rule("example.com").origin == "user"
