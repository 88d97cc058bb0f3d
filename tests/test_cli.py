import roster
import snapshot_tool
from tzbuddy.models import Teammate
from tzbuddy.registry import DirectoryStore
from tzbuddy.storage import MemoryStorage


def _seed(store, crew):
    for t in crew:
        store.add(t)


class TestSnapshotTool:
    def test_export_then_import(self, tmp_path, store, crew, capsys):
        _seed(store, crew)
        path = tmp_path / "TimezoneBuddyExport.json"
        assert snapshot_tool.export_to(store, path) == 0
        assert "Exported 4 teammate(s)" in capsys.readouterr().out

        target = DirectoryStore(MemoryStorage())
        target.add(Teammate(name="Old", time_zone_identifier="UTC"))
        assert snapshot_tool.import_from(target, path) == 0
        assert target.teammates == store.teammates

    def test_import_rejects_bad_file(self, tmp_path, store, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{}")
        assert snapshot_tool.import_from(store, bad) == 1
        assert "doesn't contain valid teammate data" in capsys.readouterr().out

    def test_import_missing_file(self, tmp_path, store):
        assert snapshot_tool.import_from(store, tmp_path / "missing.json") == 1

    def test_inspect(self, tmp_path, store, crew, capsys):
        _seed(store, crew)
        path = tmp_path / "export.json"
        path.write_bytes(store.export_snapshot())
        assert snapshot_tool.inspect_file(path) == 0
        out = capsys.readouterr().out
        assert "(4 teammate(s))" in out
        assert "Asia/Tokyo" in out


class TestRoster:
    def test_render_grouped(self, store, crew):
        _seed(store, crew)
        out = roster.render(store, "", "name", "timeZone")
        assert "America/New_York" in out
        assert out.index("Bob") < out.index("Dana")
        assert "Tokyo, Asia" in out

    def test_render_empty_search(self, store, crew):
        _seed(store, crew)
        assert "No teammates matching 'zzz'" in roster.render(store, "zzz", "name", "none")
