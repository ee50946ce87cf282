"""
Unit tests for the tool registry: manifest contents, ordering and lookup.
"""

import pytest

from kvmcp.health import HealthAggregator
from kvmcp.registry import ToolRegistry
from kvmcp.tools.sqlite import sqlite_tools

SQLITE_TOOLS = ["sqlite_get", "sqlite_set", "sqlite_delete", "sqlite_list"]
PG_TOOLS = ["pg_set", "pg_get", "pg_query"]


def build(sqlite_store, pg_store) -> ToolRegistry:
    return ToolRegistry.build(sqlite_store, pg_store, HealthAggregator(sqlite_store, pg_store))


class TestDescribe:

    def test_sqlite_only_manifest(self, sqlite_store, unconfigured_pg):
        names = [t["name"] for t in build(sqlite_store, unconfigured_pg).describe()]
        assert names == SQLITE_TOOLS + ["db_status"]

    def test_networked_tools_listed_first(self, sqlite_store, fake_pg):
        names = [t["name"] for t in build(sqlite_store, fake_pg).describe()]
        assert names == PG_TOOLS + SQLITE_TOOLS + ["db_status"]

    def test_describe_is_deterministic(self, sqlite_store, fake_pg):
        assert build(sqlite_store, fake_pg).describe() == build(sqlite_store, fake_pg).describe()

    def test_descriptor_shape(self, sqlite_store, unconfigured_pg):
        tools = {t["name"]: t for t in build(sqlite_store, unconfigured_pg).describe()}

        set_tool = tools["sqlite_set"]
        assert set(set_tool) == {"name", "description", "input_schema"}
        assert set_tool["input_schema"]["type"] == "object"
        assert set_tool["input_schema"]["required"] == ["key", "value"]
        assert set_tool["input_schema"]["properties"]["key"]["minLength"] == 1

        list_tool = tools["sqlite_list"]
        assert "required" not in list_tool["input_schema"]
        assert list_tool["input_schema"]["properties"]["pattern"]["type"] == "string"

        assert tools["db_status"]["input_schema"] == {"type": "object", "properties": {}}

    def test_pg_query_schema(self, sqlite_store, fake_pg):
        tools = {t["name"]: t for t in build(sqlite_store, fake_pg).describe()}
        schema = tools["pg_query"]["input_schema"]

        assert schema["required"] == ["query"]
        assert schema["properties"]["params"]["type"] == "array"

    def test_describe_returns_copies(self, sqlite_store, unconfigured_pg):
        registry = build(sqlite_store, unconfigured_pg)
        registry.describe()[0]["input_schema"]["properties"].clear()

        assert registry.describe()[0]["input_schema"]["properties"]


class TestResolve:

    def test_resolve_known_tool(self, sqlite_store, unconfigured_pg):
        tool = build(sqlite_store, unconfigured_pg).resolve("sqlite_get")
        assert tool is not None
        assert tool.backend == "sqlite"

    def test_resolve_unknown_tool(self, sqlite_store, unconfigured_pg):
        assert build(sqlite_store, unconfigured_pg).resolve("nonexistent_tool") is None

    def test_unlisted_networked_tools_still_resolve(self, sqlite_store, unconfigured_pg):
        registry = build(sqlite_store, unconfigured_pg)

        for name in PG_TOOLS:
            tool = registry.resolve(name)
            assert tool is not None
            assert tool.backend == "postgresql"

    def test_duplicate_names_rejected(self, sqlite_store):
        with pytest.raises(ValueError):
            ToolRegistry(sqlite_tools(sqlite_store) + sqlite_tools(sqlite_store))
