"""
Tests for tree.py - nesting flat file rows for the explorer.
"""
from data.tree import build_file_tree


def _row(id, name, path, is_directory=False, parent_id=None):
    return {"id": id, "name": name, "path": path, "is_directory": is_directory, "parent_id": parent_id}


class TestBuildFileTree:
    """Tests for build_file_tree."""

    def test_empty(self):
        assert build_file_tree([]) == []

    def test_directories_first_then_name(self):
        tree = build_file_tree([
            _row(1, "b.js", "/b.js"),
            _row(2, "src", "/src", is_directory=True),
            _row(3, "A.md", "/A.md"),
        ])
        assert [item["name"] for item in tree] == ["src", "A.md", "b.js"]

    def test_nesting_and_camel_case(self):
        tree = build_file_tree([
            _row(1, "src", "/src", is_directory=True),
            _row(2, "main.py", "/src/main.py", parent_id=1),
        ])
        assert tree == [
            {
                "id": 1,
                "name": "src",
                "path": "/src",
                "isDirectory": True,
                "parentId": None,
                "children": [
                    {"id": 2, "name": "main.py", "path": "/src/main.py", "isDirectory": False, "parentId": 1},
                ],
            }
        ]

    def test_orphans_become_roots(self):
        tree = build_file_tree([_row(5, "lost.js", "/x/lost.js", parent_id=99)])
        assert [item["id"] for item in tree] == [5]
