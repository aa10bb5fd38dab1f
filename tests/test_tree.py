from models.category import Category
from tree import build_forest, walk


def cat(id, parent_id=None, depth=None):
    return Category(id=id, label=f"C{id}", event_id=1, parent_id=parent_id, depth=depth)


class TestBuildForest:
    """Tests for build_forest."""

    def test_empty_input(self):
        assert build_forest([]) == []

    def test_nests_depth_ordered_sequence(self):
        flat = [cat(1, depth=0), cat(2, depth=0), cat(3, 1, 1), cat(4, 2, 1), cat(5, 3, 2)]

        forest = build_forest(flat)

        assert [n.category.id for n in forest] == [1, 2]
        assert [n.category.id for n in forest[0].children] == [3]
        assert [n.category.id for n in forest[0].children[0].children] == [5]
        assert [n.category.id for n in forest[1].children] == [4]

    def test_subtree_root_with_absent_parent_becomes_root(self):
        forest = build_forest([cat(7, parent_id=3, depth=0), cat(8, 7, 1)])

        assert len(forest) == 1
        assert forest[0].category.id == 7
        assert forest[0].children[0].category.id == 8

    def test_sibling_order_follows_input(self):
        forest = build_forest([cat(1), cat(9, 1), cat(4, 1)])

        assert [n.category.id for n in forest[0].children] == [9, 4]

    def test_to_dict_is_nested(self):
        forest = build_forest([cat(1, depth=0), cat(2, 1, 1)])

        assert forest[0].to_dict() == {
            "id": 1,
            "label": "C1",
            "parent_id": None,
            "event_id": 1,
            "depth": 0,
            "children": [
                {
                    "id": 2,
                    "label": "C2",
                    "parent_id": 1,
                    "event_id": 1,
                    "depth": 1,
                    "children": [],
                }
            ],
        }

    def test_walk_is_pre_order_with_depth(self):
        forest = build_forest([cat(1), cat(2), cat(3, 1), cat(4, 3)])

        assert [(d, n.category.id) for d, n in walk(forest)] == [
            (0, 1),
            (1, 3),
            (2, 4),
            (0, 2),
        ]

    def test_round_trip_with_store(self, services, event):
        """Test nesting the store's full tree output."""
        created = services.categories.create_tree(
            event.id,
            [{"label": "A", "children": [{"label": "B", "children": [{"label": "C"}]}]},
             {"label": "D"}],
        )

        forest = build_forest(services.categories.fetch_full_tree(event.id))

        assert [n.category.label for n in forest] == ["A", "D"]
        assert forest[0].children[0].children[0].category.id == created[2].id
