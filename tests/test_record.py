"""
Tests for the path snapshot
"""
from fslisten.interfaces import DIRECTORY, FILE
from fslisten.patterns import FilterRuleSet, Silencer
from fslisten.record import Record


def make_tree(root):
    (root / "src").mkdir()
    (root / "src" / "main.py").write_text("print('hi')")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (root / "notes.swp").write_text("")


class TestRecord:

    def test_build_walks_directories(self, tmp_path):
        make_tree(tmp_path)
        record = Record([tmp_path])
        record.build()

        assert str(tmp_path / "src") in record.paths
        assert record.paths[str(tmp_path / "src")].is_dir
        info = record.get(str(tmp_path / "src" / "main.py"))
        assert info is not None and not info.is_dir
        assert info.size == len("print('hi')")

    def test_build_skips_silenced(self, tmp_path):
        make_tree(tmp_path)
        silencer = Silencer(directories=[tmp_path])
        record = Record([tmp_path], lambda: silencer)
        record.build()

        assert str(tmp_path / ".git") not in record.paths
        assert str(tmp_path / ".git" / "HEAD") not in record.paths
        assert str(tmp_path / "notes.swp") not in record.paths
        assert str(tmp_path / "src" / "main.py") in record.paths

    def test_silencer_asked_with_directory_kind(self, tmp_path):
        make_tree(tmp_path)
        calls = []

        class Recorder:
            def silenced(self, path, kind):
                calls.append((path, kind))
                return False

        Record([tmp_path], Recorder).build()
        assert (str(tmp_path / "src"), DIRECTORY) in calls

    def test_exists_refreshes_snapshot(self, tmp_path):
        record = Record([tmp_path])
        record.build()
        target = tmp_path / "new.txt"

        assert not record.exists(str(target))
        target.write_text("data")
        assert record.exists(str(target))
        assert record.get(str(target)).size == 4

        target.unlink()
        assert not record.exists(str(target))
        assert record.get(str(target)) is None

    def test_files_under_ignored_directory_are_unknown_and_silenced(self, tmp_path):
        (tmp_path / "build").mkdir()
        (tmp_path / "build" / "out.o").write_text("")
        (tmp_path / "main.c").write_text("")
        silencer = Silencer(FilterRuleSet.from_options(ignore="build"), [tmp_path])
        record = Record([tmp_path], lambda: silencer)
        record.build()

        out = str(tmp_path / "build" / "out.o")
        assert out not in record.paths
        assert silencer.silenced(out, FILE)
        assert str(tmp_path / "main.c") in record.paths

    def test_get_stats(self, tmp_path):
        make_tree(tmp_path)
        record = Record([tmp_path])
        record.build()
        stats = record.get_stats()
        assert stats['paths'] == stats['directories'] + stats['files']
        assert stats['directories'] == 2
