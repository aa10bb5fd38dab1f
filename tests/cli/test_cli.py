import json

import pytest

from cli.__main__ import build_parser, run


@pytest.fixture
def cli(test_config, file_services):
    """Run a CLI command line against the file-backed test database."""

    def invoke(*argv):
        args = build_parser().parse_args([str(a) for a in argv])
        return run(args, test_config)

    return invoke


@pytest.fixture
def store(file_services):
    return file_services


class TestCli:
    """Tests for the command-line caller."""

    def test_create_and_list_event(self, cli, store):
        assert cli("events", "create", "Summit") == 0

        assert [e.name for e in store.events.find_all()] == ["Summit"]
        assert cli("events", "list") == 0
        assert cli("events", "show", store.events.find_all()[0].id) == 0

    def test_create_category_and_tree(self, cli, store, capsys):
        event = store.events.create("Summit")

        assert cli("categories", "create", event.id, "Talks") == 0
        talks = store.categories.fetch_roots(event.id)[0]
        assert cli("categories", "create", event.id, "Keynotes", "--parent", talks.id) == 0

        assert cli("categories", "tree", event.id, "--json") == 0
        printed = json.loads(capsys.readouterr().out)
        assert [(c["label"], c["depth"]) for c in printed] == [("Talks", 0), ("Keynotes", 1)]

    def test_subtree_json_is_nested(self, cli, store, capsys):
        event = store.events.create("Summit")
        root = store.categories.create("Root", event.id)
        store.categories.create("Child", event.id, root.id)

        assert cli("categories", "subtree", root.id, "--json") == 0

        printed = json.loads(capsys.readouterr().out)
        assert printed[0]["label"] == "Root"
        assert printed[0]["children"][0]["label"] == "Child"

    def test_move_and_delete(self, cli, store):
        event = store.events.create("Summit")
        a = store.categories.create("A", event.id)
        b = store.categories.create("B", event.id)

        assert cli("categories", "move", b.id, "--parent", a.id) == 0
        assert store.categories.find(b.id).parent_id == a.id

        assert cli("categories", "move", b.id) == 0
        assert store.categories.find(b.id).parent_id is None

        assert cli("categories", "delete", a.id, "--yes") == 0
        assert store.categories.find(a.id) is None

    def test_delete_prompt_can_cancel(self, cli, store, monkeypatch):
        event = store.events.create("Summit")
        a = store.categories.create("A", event.id)
        monkeypatch.setattr("builtins.input", lambda prompt: "no")

        assert cli("categories", "delete", a.id) == 0
        assert store.categories.find(a.id) is not None

    def test_seed_from_json_file(self, cli, store, tmp_path):
        event = store.events.create("Summit")
        seed = tmp_path / "seed.json"
        seed.write_text(
            json.dumps([{"label": "Talks", "children": [{"label": "Keynotes"}]}])
        )

        assert cli("categories", "seed", event.id, seed) == 0

        assert [c.label for c in store.categories.fetch_full_tree(event.id)] == [
            "Talks",
            "Keynotes",
        ]

    @pytest.mark.parametrize(
        "argv, expected",
        [
            (("events", "show", 999), 3),
            (("categories", "delete", 999, "--yes"), 3),
            (("categories", "roots", 999), 3),
            (("categories", "create", 999, "Orphan"), 2),
            (("events", "create", "   "), 2),
        ],
    )
    def test_errors_map_to_exit_codes(self, cli, argv, expected):
        assert cli(*argv) == expected

    def test_cycle_maps_to_invariant_exit_code(self, cli, store):
        event = store.events.create("Summit")
        a = store.categories.create("A", event.id)
        b = store.categories.create("B", event.id, a.id)

        assert cli("categories", "move", a.id, "--parent", b.id) == 4

    def test_migrate_commands(self, cli):
        assert cli("migrate", "status") == 0
        assert cli("migrate", "apply") == 0
