"""
Unit tests for catalog/type_filter.py
"""

from statecascade.catalog.type_filter import TypeFilter
from statecascade.core.models import ManyToManyEdge, OneToManyEdge


def one_to_many(parent, child):
    return OneToManyEdge(
        referencing_type=child,
        referencing_attribute=f"{parent}id",
        referenced_type=parent,
        referenced_attribute=f"{parent}id",
    )


def many_to_many(a, b):
    return ManyToManyEdge(
        type_a=a, type_b=b, junction_type=f"{a}_{b}",
        link_attr_a=f"{a}id", link_attr_b=f"{b}id",
    )


class TestNamespace:
    """Test namespace matching."""

    def test_prefix_with_separator(self):
        """Names must start with prefix followed by an underscore."""
        type_filter = TypeFilter("new")
        assert type_filter.matches_namespace("new_task")
        assert not type_filter.matches_namespace("newtask")
        assert not type_filter.matches_namespace("account")

    def test_include_list(self):
        """Included types match regardless of prefix."""
        type_filter = TypeFilter("new", include={"account"})
        assert type_filter.matches_namespace("account")
        assert not type_filter.matches_namespace("contact")

    def test_empty_prefix_matches_only_includes(self):
        """An empty prefix never matches by itself."""
        type_filter = TypeFilter("", include={"account"})
        assert not type_filter.matches_namespace("_task")
        assert type_filter.matches_namespace("account")


class TestEdgeScope:
    """Test edge filtering."""

    def test_one_to_many_uses_child_type(self):
        """One-to-many edges are in scope when the child matches."""
        type_filter = TypeFilter("new")
        assert type_filter.edge_in_scope(one_to_many("account", "new_task"))
        assert not type_filter.edge_in_scope(one_to_many("new_order", "contact"))

    def test_many_to_many_needs_both_endpoints(self):
        """Both endpoints of a many-to-many edge must match."""
        type_filter = TypeFilter("new")
        assert type_filter.edge_in_scope(many_to_many("new_task", "new_tag"))
        assert not type_filter.edge_in_scope(many_to_many("new_task", "contact"))

    def test_many_to_many_loop_guard(self):
        """An edge back to an already processed origin type is dropped."""
        type_filter = TypeFilter("new")
        edge = many_to_many("new_task", "new_tag")
        assert type_filter.edge_in_scope(edge, origin_type="new_task", processed=set())
        assert not type_filter.edge_in_scope(edge, origin_type="new_task", processed={"new_task"})
        assert type_filter.edge_in_scope(edge, origin_type="", processed={"new_task"})

    def test_in_scope_preserves_order(self):
        """Catalog order is kept."""
        type_filter = TypeFilter("new")
        edges = [
            one_to_many("new_order", "new_task"),
            one_to_many("new_order", "contact"),
            many_to_many("new_order", "new_tag"),
        ]
        assert type_filter.in_scope(edges) == [edges[0], edges[2]]


class TestChildType:
    """Test child type resolution."""

    def test_one_to_many_child(self):
        assert TypeFilter.child_type(one_to_many("new_order", "new_task"), "new_order") == "new_task"

    def test_many_to_many_other_endpoint(self):
        edge = many_to_many("new_task", "new_tag")
        assert TypeFilter.child_type(edge, "new_task") == "new_tag"
        assert TypeFilter.child_type(edge, "new_tag") == "new_task"

    def test_link_attributes_follow_child(self):
        """link_from joins the child, link_to filters the parent ids."""
        edge = many_to_many("new_task", "new_tag")
        assert edge.link_attributes("new_tag") == ("new_tagid", "new_taskid")
        assert edge.link_attributes("new_task") == ("new_taskid", "new_tagid")
