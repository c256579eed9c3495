"""Unit tests for the diagram model and style resolution."""

from boxarrows.geometry import BLACK, BLUE, RED, Rectangle
from boxarrows.model import (
    ANCHOR_NAMES,
    GRAPH_VARIABLE_PREFIX,
    Anchors,
    BoxStyle,
    Graph,
    ResolvedStyle,
    VariableTable,
    resolve_style_property,
)


def styles_of(*styles):
    return {style.id: style for style in styles}


class TestVariableTable:
    """Tests for the variable arena."""

    def test_intern_is_idempotent(self):
        """Test interning a name twice yields the same index."""
        table = VariableTable()
        first = table.intern("n1.top")
        assert table.intern("n1.top") == first
        assert table.intern("n1.left") == first + 1
        assert len(table) == 2

    def test_index_of_unknown(self):
        """Test unknown names have no index."""
        assert VariableTable().index_of("nope") is None

    def test_names(self):
        """Test variables keep their solver names."""
        table = VariableTable()
        table.intern("a.top")
        assert table.names() == ["a.top"]
        assert table.variable(0).name() == "a.top"


class TestAnchors:
    """Tests for anchor creation and lookup."""

    def test_create_interns_all_anchors(self):
        """Test eight distinct variables per prefix."""
        table = VariableTable()
        anchors = Anchors.create(table, "n1")
        assert len(table) == len(ANCHOR_NAMES) == 8
        assert table.names() == [f"n1.{name}" for name in ANCHOR_NAMES]
        assert anchors.index("centerX") == table.index_of("n1.centerX")

    def test_index_rejects_non_anchor(self):
        """Test only the eight anchor names resolve."""
        anchors = Anchors.create(VariableTable(), "n1")
        assert anchors.index("middle") is None
        assert anchors.index("index") is None

    def test_graph_anchor_names_cannot_clash(self):
        """Test graph anchors use a prefix no box id produces."""
        graph = Graph()
        graph.add_box("n1", "n1")
        assert f"{GRAPH_VARIABLE_PREFIX}.top" in graph.variables.names()
        assert "n1.top" in graph.variables.names()
        assert graph.anchors.top != graph.boxes["n1"].anchors.top

    def test_dot_box_id_has_own_anchors(self):
        """Test a box named "." does not share the graph's variables."""
        graph = Graph()
        box = graph.add_box(".", ".")
        assert "..top" in graph.variables.names()
        box_indices = {box.anchors.index(name) for name in ANCHOR_NAMES}
        graph_indices = {graph.anchors.index(name) for name in ANCHOR_NAMES}
        assert box_indices.isdisjoint(graph_indices)


class TestGraph:
    """Tests for Graph bookkeeping."""

    def test_sorted_boxes(self):
        """Test boxes come back ordered by id."""
        graph = Graph()
        for box_id in ("c", "a", "b"):
            graph.add_box(box_id, box_id)
        assert [box.id for box in graph.sorted_boxes()] == ["a", "b", "c"]

    def test_unsolved_frame_is_zero(self):
        """Test frames read straight from the variables."""
        graph = Graph()
        graph.add_box("a", "A")
        assert graph.box_frame("a") == Rectangle.from_bounds(0, 0, 0, 0)

    def test_resolved_style_defaults(self):
        """Test a box without style gets default appearance."""
        graph = Graph()
        box = graph.add_box("a", "A")
        assert graph.resolved_style(box) == ResolvedStyle(None, BLACK, 0.0)


class TestStyleResolution:
    """Tests for resolve_style_property."""

    def test_own_value_wins(self):
        """Test a style's own value beats its parents."""
        styles = styles_of(
            BoxStyle("parent", background_color=BLUE),
            BoxStyle("child", ["parent"], background_color=RED),
        )
        assert resolve_style_property(styles, "child", "background_color") == RED

    def test_later_parent_wins(self):
        """Test the last parent setting a value wins."""
        styles = styles_of(
            BoxStyle("a", background_color=RED),
            BoxStyle("b", background_color=BLUE),
            BoxStyle("c"),
            BoxStyle("child", ["a", "b", "c"]),
        )
        assert resolve_style_property(styles, "child", "background_color") == BLUE

    def test_grandparent_value(self):
        """Test values resolve through several levels."""
        styles = styles_of(
            BoxStyle("root", horizontal_padding=4.0),
            BoxStyle("middle", ["root"]),
            BoxStyle("leaf", ["middle"]),
        )
        assert resolve_style_property(styles, "leaf", "horizontal_padding") == 4.0

    def test_unset_is_none(self):
        """Test an unset property and a None style resolve to None."""
        styles = styles_of(BoxStyle("a"))
        assert resolve_style_property(styles, "a", "text_color") is None
        assert resolve_style_property(styles, None, "text_color") is None

    def test_cycle_terminates(self):
        """Test a cycle resolves as if its closing edge were absent."""
        cyclic = styles_of(
            BoxStyle("a", ["b"]),
            BoxStyle("b", ["a", "c"]),
            BoxStyle("c", text_color=RED),
        )
        acyclic = styles_of(
            BoxStyle("a", ["b"]),
            BoxStyle("b", ["c"]),
            BoxStyle("c", text_color=RED),
        )
        assert resolve_style_property(cyclic, "a", "text_color") == RED
        assert resolve_style_property(cyclic, "a", "text_color") == resolve_style_property(
            acyclic, "a", "text_color"
        )

    def test_self_cycle(self):
        """Test a style inheriting itself resolves to nothing."""
        styles = styles_of(BoxStyle("a", ["a"]))
        assert resolve_style_property(styles, "a", "background_color") is None

    def test_has_overrides(self):
        """Test has_overrides ignores inherits."""
        assert not BoxStyle("a", ["b"]).has_overrides()
        assert BoxStyle("a", horizontal_padding=0.0).has_overrides()

    def test_nested_later_parent_wins(self):
        """Test a value found deep under a later parent beats an earlier parent."""
        styles = styles_of(
            BoxStyle("first", text_color=RED),
            BoxStyle("deep", text_color=BLUE),
            BoxStyle("second", ["deep"]),
            BoxStyle("child", ["first", "second"]),
        )
        assert resolve_style_property(styles, "child", "text_color") == BLUE

    def test_long_chain(self):
        """Test inheritance chains deeper than the recursion limit resolve."""
        chain = [BoxStyle(f"s{index}", [f"s{index + 1}"]) for index in range(1500)]
        chain.append(BoxStyle("s1500", text_color=RED))
        styles = styles_of(*chain)
        assert resolve_style_property(styles, "s0", "text_color") == RED
        assert resolve_style_property(styles, "s0", "background_color") is None
