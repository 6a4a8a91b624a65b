"""Tests for registry/exports.py module."""

from buildrelay.invocation import InvocationConfig
from buildrelay.registry.exports import MAKEVARS_HEADER, MakeVarsExporter, join_paths
from buildrelay.registry.outputs import append


class TestJoinPaths:
    """Tests for join_paths function."""

    def test_space_joined(self):
        """Should join with single spaces."""
        assert join_paths(["a.jar", "b.jar"]) == "a.jar b.jar"

    def test_empty(self):
        """Should return empty string for no paths."""
        assert join_paths([]) == ""


class TestMakeVarsExporter:
    """Tests for MakeVarsExporter."""

    def test_export_sorted_value(self):
        """Should export the drained, sorted, space-joined value."""
        invocation = InvocationConfig()
        append(invocation, "JARS", "c.jar")
        append(invocation, "JARS", "a.jar")

        var = MakeVarsExporter(invocation).export("JARS")

        assert var.value == "a.jar c.jar"
        assert var.paths == ["a.jar", "c.jar"]
        assert var.strict is False

    def test_export_missing_name(self):
        """Should export an empty value for a name with no entries."""
        var = MakeVarsExporter(InvocationConfig()).strict("NOTHING")

        assert var.value == ""
        assert var.strict is True

    def test_render(self):
        """Should render one assignment per variable, sorted by name."""
        invocation = InvocationConfig()
        append(invocation, "B_VAR", "y")
        append(invocation, "A_VAR", "x")
        exporter = MakeVarsExporter(invocation)
        exporter.strict("B_VAR")
        exporter.export("A_VAR")

        content = exporter.render()

        assert content.startswith(MAKEVARS_HEADER)
        assert content.index("A_VAR := x") < content.index("B_VAR := y")
        assert content.endswith("STRICT_VARS := B_VAR\n")

    def test_render_without_strict_vars(self):
        """Should omit STRICT_VARS when nothing is strict."""
        exporter = MakeVarsExporter(InvocationConfig())
        exporter.export("A_VAR")

        assert "STRICT_VARS" not in exporter.render()

    def test_write_only_when_changed(self, tmp_path):
        """Should skip rewriting an up-to-date file."""
        invocation = InvocationConfig()
        append(invocation, "JARS", "a.jar")
        exporter = MakeVarsExporter(invocation)
        exporter.export("JARS")
        path = tmp_path / "soong" / "make_vars.mk"

        assert exporter.write(path) is True
        assert "JARS := a.jar\n" in path.read_text()
        assert exporter.write(path) is False
