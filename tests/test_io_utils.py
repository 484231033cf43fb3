import json
import os
import stat

import pytest

from conftest import make_record
from streamsort.exceptions import OutputError, ParseError
from streamsort.io_utils import (
    create_backup,
    read_json_batch,
    read_sorted_streams,
    write_sorted_streams,
)
from streamsort.models import Stream


def _streams():
    a = Stream.from_dict(make_record("2021-01-01T00:00:00Z", master_metadata_track_name="Café <del> & \"quotes\""))
    a.artwork_url = "https://i.scdn.co/image/ab67616d0000b273?x=1&y=2"
    b = Stream.from_dict(make_record("2021-01-02T00:00:00Z", uri="spotify:episode:BBB"))
    return [a, b]


def test_create_backup_creates_file(tmp_path):
    p = tmp_path / "sorted_streams.json"
    p.write_text("[]\n", encoding="utf-8")

    backup_path = create_backup(p)

    assert backup_path.exists()
    assert "_backup_" in backup_path.name
    assert backup_path.suffix == ".json"
    assert backup_path.read_text(encoding="utf-8") == "[]\n"


def test_read_json_batch_rejects_non_objects(tmp_path):
    p = tmp_path / "batch.json"
    p.write_text("[{}, \"x\"]", encoding="utf-8")
    with pytest.raises(ParseError, match="record 1"):
        read_json_batch(p)


def test_read_json_batch_missing_file(tmp_path):
    with pytest.raises(ParseError, match="Error when opening"):
        read_json_batch(tmp_path / "missing.json")


def test_write_uses_indent_and_literal_characters(tmp_path):
    out = tmp_path / "sorted_streams.json"
    write_sorted_streams(_streams(), out)

    text = out.read_text(encoding="utf-8")
    assert text.startswith("[\n    {\n        \"ts\": ")
    assert text.endswith("]\n")
    assert "Café <del> & \\\"quotes\\\"" in text
    assert "?x=1&y=2" in text
    assert "\\u" not in text


def test_absent_values_are_explicit_nulls(tmp_path):
    out = tmp_path / "sorted_streams.json"
    write_sorted_streams(_streams(), out)

    rows = json.loads(out.read_text(encoding="utf-8"))
    assert rows[1]["artwork_url"] is None
    assert "episode_name" in rows[0] and rows[0]["episode_name"] is None


def test_round_trip(tmp_path):
    streams = _streams()
    out = tmp_path / "sorted_streams.json"
    write_sorted_streams(streams, out)
    assert read_sorted_streams(out) == streams


def test_overwrites_and_backs_up(tmp_path):
    out = tmp_path / "sorted_streams.json"
    out.write_text("old", encoding="utf-8")

    write_sorted_streams(_streams(), out, make_backup=True)

    assert json.loads(out.read_text(encoding="utf-8"))[0]["ts"] == "2021-01-01T00:00:00Z"
    backups = list(tmp_path.glob("sorted_streams_backup_*.json"))
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == "old"


def test_failed_write_raises_output_error_and_keeps_old_file(tmp_path, monkeypatch):
    out = tmp_path / "sorted_streams.json"
    out.write_text("old", encoding="utf-8")

    def broken_replace(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(OutputError, match="read-only"):
        write_sorted_streams(_streams(), out)

    assert out.read_text(encoding="utf-8") == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["sorted_streams.json"]


def test_missing_directory_raises_output_error(tmp_path):
    with pytest.raises(OutputError):
        write_sorted_streams(_streams(), tmp_path / "nope" / "sorted_streams.json")


def test_read_json_batch_invalid_utf8(tmp_path):
    p = tmp_path / "batch.json"
    p.write_bytes(b'[{"ts": "\xff"}]')
    with pytest.raises(ParseError, match="UTF-8"):
        read_json_batch(p)


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_new_output_gets_umask_default_mode(tmp_path):
    out = tmp_path / "sorted_streams.json"
    umask = os.umask(0o022)
    try:
        write_sorted_streams(_streams(), out)
    finally:
        os.umask(umask)

    assert stat.S_IMODE(out.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_overwrite_keeps_existing_mode(tmp_path):
    out = tmp_path / "sorted_streams.json"
    out.write_text("old", encoding="utf-8")
    os.chmod(out, 0o640)

    write_sorted_streams(_streams(), out)

    assert stat.S_IMODE(out.stat().st_mode) == 0o640
