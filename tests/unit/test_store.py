"""
Unit tests for the in-memory hierarchy store.

Tests cover:
- Loading (type overwrite, unknown-type drop, dangling relationships)
- Containment vs link separation
- Root computation
- Attribute edits
- Cascading delete and cycle safety
- Serialization and round trips
"""

import pytest

from hierarchy.model import ExportAction, HierarchyStore


def _store(types, entities, relationships):
    store = HierarchyStore()
    store.load(types, entities, relationships)
    return store


def _entity(node_id, type_key="T", attributes="{}"):
    return (node_id, f"Node {node_id}", type_key, "src", attributes, "INSERT")


class TestLoad:
    """Tests for HierarchyStore.load."""

    def test_load_returns_node_map(self, sample_rows):
        """Load returns a read-only view keyed by id."""
        store = HierarchyStore()

        node_map = store.load(*sample_rows)

        assert list(node_map) == ["S1", "U1", "U2", "P1", "X1"]
        assert node_map["P1"].name == "Feed Pump"
        with pytest.raises(TypeError):
            node_map["Z"] = None

    def test_type_overwrite(self):
        """Later type rows replace earlier ones with the same key."""
        store = _store([("T", "v1"), ("T", "v2")], [_entity("A")], [])

        assert len(store.types) == 1
        assert store.types.get("T").attribute_schema == "v2"
        assert store.get("A").entity_type.attribute_schema == "v2"

    def test_unknown_type_dropped(self):
        """Entity rows citing an undeclared type produce no node."""
        store = _store([("T", "")], [_entity("A"), _entity("B", type_key="Missing")], [])

        assert len(store) == 1
        assert "B" not in store
        assert store.last_load_report.entities_dropped == 1

    def test_duplicate_entity_last_write_wins(self):
        """A repeated id keeps the later row."""
        store = _store(
            [("T", "")],
            [("A", "First", "T", "s", "{}", "INSERT"), ("A", "Second", "T", "s", "{}", "DELETE")],
            [],
        )

        assert len(store) == 1
        assert store.get("A").name == "Second"
        assert store.get("A").action == "DELETE"

    def test_dangling_relationship_dropped(self):
        """Relationship rows with unknown ids add no edge and raise nothing."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B")],
            [("A", "Z", "HAS"), ("Z", "B", "HAS"), ("Z", "Y", "LINK")],
        )

        assert store.get("A").children == []
        assert store.get("A").links == []
        assert store.last_load_report.relationships_dropped == 3

    def test_containment_vs_link(self):
        """HAS appends to children, any other kind appends to links."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B"), _entity("C"), _entity("D")],
            [("A", "B", "HAS"), ("A", "C", "LINK"), ("A", "D", "has")],
        )

        assert store.get("A").children == ["B"]
        assert store.get("A").links == ["C", "D"]

    def test_repeated_rows_repeat_edges(self):
        """Duplicate relationship rows produce duplicate entries."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B")],
            [("A", "B", "HAS"), ("A", "B", "HAS")],
        )

        assert store.get("A").children == ["B", "B"]

    def test_self_containment_dropped(self):
        """A node never contains itself."""
        store = _store([("T", "")], [_entity("A")], [("A", "A", "HAS"), ("A", "A", "LINK")])

        assert store.get("A").children == []
        assert store.get("A").links == ["A"]

    def test_short_rows_padded(self):
        """Missing trailing cells are read as empty strings."""
        store = _store([("T",)], [("A", "Alpha", "T")], [])

        node = store.get("A")
        assert node.source == ""
        assert node.attributes == ""
        assert store.types.get("T").attribute_schema == ""

    def test_load_replaces_contents(self, store):
        """A second load discards the previous hierarchy."""
        store.load([("T", "")], [_entity("A")], [])

        assert list(store.node_map) == ["A"]
        assert list(t.type for t in store.types.types()) == ["T"]

    def test_load_report_counts(self, store):
        """The load report reflects every row."""
        report = store.last_load_report

        assert report.types_registered == 4
        assert report.entities_loaded == 5
        assert report.entities_dropped == 0
        assert report.relationships_linked == 4
        assert report.relationships_dropped == 0


class TestRoots:
    """Tests for root computation."""

    def test_root_definition(self):
        """Childless unreferenced nodes are not roots."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B"), _entity("C")],
            [("A", "B", "HAS")],
        )

        assert [n.id for n in store.roots()] == ["A"]

    def test_include_orphans(self):
        """include_orphans adds childless unreferenced nodes."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B"), _entity("C")],
            [("A", "B", "HAS")],
        )

        assert [n.id for n in store.roots(include_orphans=True)] == ["A", "C"]

    def test_link_target_can_still_be_root(self):
        """Being a link target does not disqualify a root."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B"), _entity("C")],
            [("A", "B", "HAS"), ("C", "A", "LINK")],
        )

        assert [n.id for n in store.roots()] == ["A"]

    def test_pure_cycle_has_no_roots(self):
        """Nodes that contain each other are all children."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B")],
            [("A", "B", "HAS"), ("B", "A", "HAS")],
        )

        assert store.roots() == []

    def test_sample_roots(self, store):
        """The sample plant has a single root."""
        assert [n.id for n in store.roots()] == ["S1"]
        assert [n.id for n in store.roots(include_orphans=True)] == ["S1", "X1"]


class TestSetAttributes:
    """Tests for attribute edits."""

    def test_updates_only_attributes(self, store):
        """Only the attributes field changes."""
        before = store.get("U1").to_dict()

        assert store.set_attributes("U1", '{"capacity": 99}') is True

        after = store.get("U1").to_dict()
        assert after["attributes"] == '{"capacity": 99}'
        before.pop("attributes")
        after.pop("attributes")
        assert before == after

    def test_does_not_validate(self, store):
        """The store accepts any string."""
        assert store.set_attributes("U1", "not json") is True
        assert store.get("U1").attributes == "not json"

    def test_missing_id_is_noop(self, store):
        """Unknown ids leave the store unchanged."""
        before = [n.to_dict() for n in store.nodes()]

        assert store.set_attributes("missing", "{}") is False

        assert [n.to_dict() for n in store.nodes()] == before


class TestDeleteCascade:
    """Tests for cascading delete."""

    def test_removes_subtree_and_prunes_references(self):
        """Deleting A removes its containment subtree and dangling references."""
        store = _store(
            [("T", "")],
            [_entity(i) for i in ["A", "B", "C", "D", "X", "L"]],
            [
                ("A", "B", "HAS"),
                ("A", "C", "HAS"),
                ("B", "D", "HAS"),
                ("A", "L", "LINK"),
                ("X", "D", "HAS"),
                ("X", "B", "LINK"),
                ("X", "L", "HAS"),
            ],
        )

        removed = store.delete_cascade("A")

        assert removed == {"A", "B", "C", "D"}
        assert set(store.node_map) == {"X", "L"}
        assert store.get("X").children == ["L"]
        assert store.get("X").links == []

    def test_links_not_followed(self, store):
        """Link-only referents survive."""
        store.delete_cascade("X1")

        assert "P1" in store
        assert "X1" not in store

    def test_cycle_safety(self):
        """Cyclic containment terminates and removes exactly the cycle."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B"), _entity("C")],
            [("A", "B", "HAS"), ("B", "A", "HAS"), ("C", "A", "LINK")],
        )

        removed = store.delete_cascade("A")

        assert removed == {"A", "B"}
        assert list(store.node_map) == ["C"]
        assert store.get("C").links == []

    def test_missing_id_is_noop(self, store):
        """Deleting an unknown id changes nothing."""
        assert store.delete_cascade("missing") == set()
        assert len(store) == 5

    def test_sample_delete(self, store):
        """Deleting a unit removes its pump and the sensor's link to it."""
        removed = store.delete_cascade("U1")

        assert removed == {"U1", "P1"}
        assert store.get("S1").children == ["U2"]
        assert store.get("X1").links == []


class TestSerialize:
    """Tests for serialization."""

    def test_serialize_rows(self, store):
        """Rows are grouped and stamped with the export action."""
        rows = store.serialize(ExportAction.DELETE)

        assert rows.types[0] == ("Site", '{"region": "str"}')
        assert rows.entities[0] == (
            "S1",
            "North Plant",
            "Site",
            "erp",
            '{"region": "north"}',
            "DELETE",
        )
        assert rows.relationships == [
            ("S1", "U1", "HAS", "DELETE"),
            ("S1", "U2", "HAS", "DELETE"),
            ("U1", "P1", "HAS", "DELETE"),
            ("X1", "P1", "LINK", "DELETE"),
        ]

    def test_unused_types_omitted(self):
        """Types without entities are not exported."""
        store = _store([("T", "a"), ("Unused", "b")], [_entity("A")], [])

        assert store.serialize("INSERT").types == [("T", "a")]

    def test_action_string_accepted(self, store):
        """Action may be given as a string, case-insensitively."""
        rows = store.serialize("delete")

        assert {r[5] for r in rows.entities} == {"DELETE"}

    def test_invalid_action_raises(self, store):
        """Unknown actions are rejected."""
        with pytest.raises(ValueError, match="Invalid export action"):
            store.serialize("UPSERT")

    def test_children_before_links(self):
        """Per node, HAS rows precede LINK rows."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B"), _entity("C")],
            [("A", "C", "LINK"), ("A", "B", "HAS")],
        )

        kinds = [r[2] for r in store.serialize().relationships]
        assert kinds == ["HAS", "LINK"]

    def test_empty_store(self):
        """Serializing an empty store yields empty groups."""
        rows = HierarchyStore().serialize()

        assert rows.is_empty

    def test_round_trip(self, store):
        """Loading serialized rows reproduces the hierarchy."""
        rows = store.serialize(ExportAction.INSERT)
        reloaded = HierarchyStore()
        reloaded.load(rows.types, rows.entities, [r[:3] for r in rows.relationships])

        assert list(reloaded.node_map) == list(store.node_map)
        for node in store.nodes():
            other = reloaded.get(node.id)
            assert other.children == node.children
            assert other.links == node.links
            assert other.attributes == node.attributes
            assert other.entity_type == node.entity_type


class TestViews:
    """Tests for read-only views."""

    def test_walk_depth_first(self, store):
        """walk yields (depth, node, expanded) in depth-first order."""
        assert [(d, n.id, e) for d, n, e in store.walk("S1")] == [
            (0, "S1", True),
            (1, "U1", True),
            (2, "P1", True),
            (1, "U2", True),
        ]

    def test_walk_cycle(self):
        """The node closing a cycle is yielded once more, unexpanded."""
        store = _store(
            [("T", "")],
            [_entity("A"), _entity("B")],
            [("A", "B", "HAS"), ("B", "A", "HAS")],
        )

        assert [(d, n.id, e) for d, n, e in store.walk("A")] == [
            (0, "A", True),
            (1, "B", True),
            (2, "A", False),
        ]

    def test_walk_shared_child(self):
        """A child of two parents appears under each, expanded only under the first."""
        store = _store(
            [("T", "")],
            [_entity("R"), _entity("A"), _entity("B"), _entity("C"), _entity("D")],
            [
                ("R", "A", "HAS"),
                ("R", "B", "HAS"),
                ("A", "C", "HAS"),
                ("B", "C", "HAS"),
                ("C", "D", "HAS"),
            ],
        )

        assert [(n.id, e) for _, n, e in store.walk("R")] == [
            ("R", True),
            ("A", True),
            ("C", True),
            ("D", True),
            ("B", True),
            ("C", False),
        ]

    def test_walk_dense_cycles(self):
        """Every node is expanded once even when all nodes contain each other."""
        ids = [f"N{i}" for i in range(8)]
        relationships = [("R", i, "HAS") for i in ids]
        relationships += [(a, b, "HAS") for a in ids for b in ids if a != b]
        store = _store([("T", "")], [_entity("R")] + [_entity(i) for i in ids], relationships)

        visits = list(store.walk("R"))

        assert len(visits) == 1 + len(relationships)
        expanded = [n.id for _, n, e in visits if e]
        assert sorted(expanded) == sorted(["R"] + ids)

    def test_walk_max_depth(self):
        """Nodes at max_depth are yielded but not expanded."""
        chain = [f"N{i}" for i in range(2000)]
        store = _store(
            [("T", "")],
            [_entity(i) for i in chain],
            [(a, b, "HAS") for a, b in zip(chain, chain[1:])],
        )

        visits = list(store.walk("N0", max_depth=3))

        assert [(d, n.id, e) for d, n, e in visits] == [
            (0, "N0", True),
            (1, "N1", True),
            (2, "N2", True),
            (3, "N3", False),
        ]
        assert len(list(store.walk("N0"))) == 2000

    def test_walk_shared_seen(self, store):
        """A seen set shared between walks keeps nodes from expanding twice."""
        seen = set()
        list(store.walk("U1", seen=seen))

        assert [(n.id, e) for _, n, e in store.walk("S1", seen=seen)] == [
            ("S1", True),
            ("U1", False),
            ("U2", True),
        ]

    def test_walk_missing(self, store):
        assert list(store.walk("missing")) == []

    def test_resolved_edges(self, store):
        """children_of and links_of resolve ids to nodes."""
        assert [n.id for n in store.children_of("S1")] == ["U1", "U2"]
        assert [n.id for n in store.links_of("X1")] == ["P1"]
        assert store.children_of("missing") == []

    def test_stats(self, store):
        assert store.stats() == {
            "total_entities": 5,
            "total_roots": 1,
            "total_types": 4,
            "total_relationships": 4,
        }
