"""Tests for the tool catalog and its registry."""

import pytest

from modules.assistant.handlers import ToolHandlers, build_registry
from modules.assistant.tools import TOOL_CATALOG, ToolRegistry, ToolRegistryError


async def _noop(self, args, ctx):
    return None


def test_catalog_names_are_unique():
    names = [tool["function"]["name"] for tool in TOOL_CATALOG]
    assert len(names) == len(set(names)) == 23


def test_catalog_entries_are_openai_function_schemas():
    for tool in TOOL_CATALOG:
        assert tool["type"] == "function"
        assert tool["function"]["parameters"]["type"] == "object"
        assert tool["function"]["description"]


def test_build_registry_binds_every_tool():
    registry = build_registry()
    for name in registry.names:
        assert registry.handler_for(name) is getattr(ToolHandlers, name)
        assert registry.template_for(name) is not None


def test_unknown_tool_has_no_handler():
    assert build_registry().handler_for("apagar_tudo") is None


def test_missing_handler_fails_validation():
    registry = ToolRegistry()
    registry.register("criar_ordem_servico", _noop)
    with pytest.raises(ToolRegistryError, match="missing handlers"):
        registry.validate()


def test_handler_without_schema_fails_validation():
    registry = build_registry()
    registry.handlers["apagar_tudo"] = _noop
    with pytest.raises(ToolRegistryError, match="handlers without schema"):
        registry.validate()


def test_missing_template_fails_validation():
    registry = ToolRegistry(templates={})
    for name in registry.names:
        registry.register(name, _noop)
    with pytest.raises(ToolRegistryError, match="missing templates"):
        registry.validate()


def test_duplicate_catalog_entry_fails_validation():
    registry = ToolRegistry(catalog=TOOL_CATALOG + TOOL_CATALOG[:1])
    with pytest.raises(ToolRegistryError, match="Duplicate"):
        registry.validate()


def test_register_twice_fails():
    registry = ToolRegistry()
    registry.register("criar_ordem_servico", _noop)
    with pytest.raises(ToolRegistryError):
        registry.register("criar_ordem_servico", _noop)
