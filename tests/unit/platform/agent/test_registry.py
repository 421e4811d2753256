"""Unit tests for the tool registry."""

import logging

from codeloop.platform.agent.registry import ToolRegistry
from codeloop.platform.agent.tools import FunctionTool, ToolSchema


def make_tool(name: str, description: str = "") -> FunctionTool:
    async def func(**kwargs) -> str:
        return name

    return FunctionTool(name, description or f"{name} tool", {"type": "object"}, func)


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_empty_registry(self):
        """A new registry has no tools and exports no schemas."""
        registry = ToolRegistry()
        assert len(registry) == 0
        assert registry.export_schemas() == ()
        assert registry.get("grep") is None

    def test_register_and_lookup(self):
        """Registered tools are found by name."""
        tool = make_tool("grep")
        registry = ToolRegistry()

        registry.register(tool)

        assert registry.get("grep") is tool
        assert "grep" in registry
        assert "glob" not in registry

    def test_bulk_constructor_keeps_order(self):
        """Schemas are exported in registration order."""
        registry = ToolRegistry([make_tool("read_file"), make_tool("grep"), make_tool("bash")])

        assert registry.names() == ["read_file", "grep", "bash"]
        assert [schema.name for schema in registry.export_schemas()] == ["read_file", "grep", "bash"]

    def test_last_registration_wins(self, caplog):
        """Re-registering a name replaces the tool and logs a warning."""
        first = make_tool("grep", "first")
        second = make_tool("grep", "second")
        registry = ToolRegistry([first])

        with caplog.at_level(logging.WARNING):
            registry.register(second)

        assert registry.get("grep") is second
        assert len(registry) == 1
        assert "already registered" in caplog.text

    def test_export_schemas(self):
        """Schemas reflect each tool's advertisement."""
        registry = ToolRegistry([make_tool("glob", "Find files")])

        assert registry.export_schemas() == (
            ToolSchema(name="glob", description="Find files", parameters={"type": "object"}),
        )

    def test_exported_schemas_unaffected_by_later_registration(self):
        """A previously exported snapshot does not change."""
        registry = ToolRegistry([make_tool("grep")])
        snapshot = registry.export_schemas()

        registry.register(make_tool("bash"))

        assert len(snapshot) == 1
        assert len(registry.export_schemas()) == 2
