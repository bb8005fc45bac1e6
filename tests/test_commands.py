import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from promptbuilder.commands import (
    handle_add,
    handle_clear,
    handle_info,
    handle_list,
    handle_print,
)
from promptbuilder.config import Settings
from promptbuilder.core import FileEntry, ReadError, UserError
from promptbuilder.state import State, load


class CommandTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)
        self._cwd = os.getcwd()
        os.chdir(self.base)
        self.state_path = self.base / "config" / "state.json"
        self.out = io.StringIO()

    def tearDown(self):
        os.chdir(self._cwd)
        self._tmp.cleanup()

    def write(self, rel, content=""):
        path = self.base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path


class AddTest(CommandTestCase):
    def test_add_is_idempotent(self):
        self.write("src/a.rs")
        self.write("src/b.rs")
        self.write("src/x.lock")

        state = load(self.state_path)
        self.assertEqual(handle_add(state, ["src/"], out=self.out), 2)
        self.assertIn("2 file(s) added successfully.", self.out.getvalue())
        saved = self.state_path.read_bytes()

        state = load(self.state_path)
        out = io.StringIO()
        self.assertEqual(handle_add(state, ["src/"], out=out), 0)
        self.assertEqual(out.getvalue(), "No new files added.\n")
        self.assertEqual(self.state_path.read_bytes(), saved)
        self.assertEqual(
            {os.path.normpath(e.relative_path) for e in load(self.state_path).files},
            {os.path.join("src", "a.rs"), os.path.join("src", "b.rs")},
        )

    def test_add_nothing_new_does_not_write(self):
        self.write("src/only.lock")
        state = load(self.state_path)
        self.assertEqual(handle_add(state, ["src"], out=self.out), 0)
        self.assertFalse(self.state_path.exists())

    def test_repeated_adds_keep_paths_unique(self):
        self.write("src/a.rs")
        self.write("src/sub/b.rs")
        state = load(self.state_path)
        for patterns in (["src/sub"], ["src"], ["./src", "src/sub/b.rs"], ["src/a.rs"]):
            handle_add(state, patterns, out=self.out)
        paths = [e.absolute_path for e in load(self.state_path).files]
        self.assertEqual(len(paths), 2)
        self.assertEqual(len(set(paths)), 2)


class ListTest(CommandTestCase):
    def test_empty_state(self):
        handle_list(State(path=self.state_path), out=self.out)
        self.assertEqual(self.out.getvalue(), "No files have been added yet.\n")

    def test_lists_relative_paths_in_insertion_order(self):
        state = State(
            path=self.state_path,
            files=[FileEntry("a.rs", Path("/p/a.rs")), FileEntry("b.rs", Path("/p/b.rs"))],
        )
        handle_list(state, out=self.out)
        lines = self.out.getvalue().splitlines()
        self.assertEqual(lines, ["Files in state:", "- a.rs", "- b.rs"])

    def test_long_listing_shows_absolute_paths(self):
        absolute = Path("/p/a.rs")
        state = State(path=self.state_path, files=[FileEntry("a.rs", absolute)])
        handle_list(state, long=True, out=self.out)
        self.assertIn(f"- a.rs ({absolute})", self.out.getvalue())

    def test_list_does_not_persist(self):
        handle_list(State(path=self.state_path), out=self.out)
        self.assertFalse(self.state_path.exists())


class ClearTest(CommandTestCase):
    def test_clear_always_writes(self):
        state = load(self.state_path)
        handle_clear(state, out=self.out)
        self.assertTrue(self.state_path.exists())
        self.assertEqual(load(self.state_path).files, [])
        self.assertEqual(self.out.getvalue(), "State cleared.\n")

    def test_clear_rewrites_existing_state(self):
        path = self.write("a.rs")
        state = State(path=self.state_path, files=[FileEntry("a.rs", path)])
        self.state_path.parent.mkdir(parents=True)
        self.state_path.write_text("stale", encoding="utf-8")
        handle_clear(state, out=self.out)
        self.assertEqual(state.files, [])
        self.assertEqual(load(self.state_path).files, [])


class PrintTest(CommandTestCase):
    def test_empty_state_raises_without_reading(self):
        with mock.patch("pathlib.Path.open") as opened:
            with self.assertRaises(UserError) as ctx:
                handle_print(State(path=self.state_path), out=self.out)
        opened.assert_not_called()
        self.assertEqual(str(ctx.exception), "No files to print!")
        self.assertEqual(self.out.getvalue(), "")

    def test_prints_tagged_blocks(self):
        a = self.write("a.rs", "fn a() {}")
        b = self.write("b.rs", "fn b() {}\n")
        state = State(
            path=self.state_path,
            files=[FileEntry("a.rs", a.resolve()), FileEntry("src/b.rs", b.resolve())],
        )
        handle_print(state, out=self.out)
        self.assertEqual(
            self.out.getvalue(),
            "<files>\n"
            '<file path="a.rs">\nfn a() {}\n</file>\n'
            '<file path="src/b.rs">\nfn b() {}\n\n</file>\n'
            "</files>\n",
        )

    def test_unreadable_file_aborts_output(self):
        a = self.write("a.rs", "first")
        c = self.write("c.rs", "never printed")
        state = State(
            path=self.state_path,
            files=[
                FileEntry("a.rs", a.resolve()),
                FileEntry("gone.rs", self.base / "gone.rs"),
                FileEntry("c.rs", c.resolve()),
            ],
        )
        with self.assertRaises(ReadError):
            handle_print(state, out=self.out)
        self.assertIn("first", self.out.getvalue())
        self.assertNotIn("never printed", self.out.getvalue())
        self.assertNotIn("</files>", self.out.getvalue())


class InfoTest(CommandTestCase):
    def test_reports_state_path(self):
        handle_info(Settings(state_path=self.state_path), out=self.out)
        self.assertEqual(self.out.getvalue(), f"State path: {self.state_path}\n")


if __name__ == "__main__":
    unittest.main()
