"""
Tests for HAR capture loading.
"""

import json

import pytest

from packet_replayer.capture_loader import (
    load_recording,
    load_recordings,
    parse_recordings,
    select_recording,
)
from packet_replayer.errors import LoadError

from tests.conftest import LONG_FRAMES, SHORT_FRAMES, ws_entry


def test_parse_skips_non_play_and_empty_entries(har_archive):
    recordings = parse_recordings(har_archive)

    assert len(recordings) == 2
    assert list(recordings[0]) == SHORT_FRAMES
    assert recordings[0].entry_index == 1
    assert recordings[0].url.endswith("gameId=a")
    assert len(recordings[1]) == len(LONG_FRAMES)
    assert recordings[1].entry_index == 5


def test_parse_drops_client_sent_messages(har_archive):
    recordings = parse_recordings(har_archive)
    for recording in recordings:
        assert b"\x03\x00" not in recording.frames


def test_parse_custom_marker(har_archive):
    recordings = parse_recordings(har_archive, marker="/team")
    assert [list(r) for r in recordings] == [[b"\x01team"]]


def test_parse_missing_entries():
    with pytest.raises(LoadError):
        parse_recordings({"log": {}})
    with pytest.raises(LoadError):
        parse_recordings([])


def test_parse_bad_base64():
    archive = {"log": {"entries": [ws_entry("wss://x/play", [b"ok"])]}}
    archive["log"]["entries"][0]["_webSocketMessages"].append(
        {"type": "receive", "data": "not base64!!"})

    with pytest.raises(LoadError, match="base64"):
        parse_recordings(archive)


def test_select_recording_bounds(har_archive):
    recordings = parse_recordings(har_archive)

    assert select_recording(recordings, 1) is recordings[1]
    with pytest.raises(LoadError):
        select_recording(recordings, 2)
    with pytest.raises(LoadError):
        select_recording(recordings, -1)


def test_select_from_capture_without_frames():
    archive = {"log": {"entries": [ws_entry("wss://x/play", [], sent=[b"\x03"])]}}
    with pytest.raises(LoadError):
        select_recording(parse_recordings(archive), 0)


def test_load_recording_from_file(har_file):
    recording = load_recording(str(har_file), 0)
    assert recording.frames == tuple(SHORT_FRAMES)
    assert len(load_recordings(str(har_file))) == 2


def test_load_missing_file(tmp_path):
    with pytest.raises(LoadError):
        load_recording(str(tmp_path / "missing.har"), 0)


def test_load_invalid_json(tmp_path):
    path = tmp_path / "broken.har"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(LoadError):
        load_recordings(str(path))


def test_load_out_of_range(har_file):
    with pytest.raises(LoadError, match="越界"):
        load_recording(str(har_file), 3)


def test_load_rejects_capture_of_only_empty_games(tmp_path):
    path = tmp_path / "empty.har"
    path.write_text(json.dumps({"log": {"entries": [ws_entry("wss://x/play", [])]}}),
                    encoding="utf-8")
    with pytest.raises(LoadError):
        load_recording(str(path), 0)


@pytest.mark.parametrize("entry", [
    {"request": {"url": None}, "_webSocketMessages": []},
    {"request": {"url": 42}},
    {"request": "wss://x/play"},
    {"request": {"url": "wss://x/play"}, "_webSocketMessages": 5},
    {"request": {"url": "wss://x/play"}, "_webSocketMessages": "abc"},
    {"request": {"url": "wss://x/play"}, "_webSocketMessages": ["abc"]},
    "wss://x/play",
])
def test_parse_malformed_entry(entry):
    with pytest.raises(LoadError, match="entry 0"):
        parse_recordings({"log": {"entries": [entry]}})


def test_parse_entry_without_url_is_skipped():
    archive = {"log": {"entries": [{"request": {}}, ws_entry("wss://x/play", [b"a"])]}}
    assert [r.entry_index for r in parse_recordings(archive)] == [1]


def test_load_non_utf8_file(tmp_path):
    path = tmp_path / "binary.har"
    path.write_bytes(b'{"log": {"entries": []}, "x": "\xff"}')
    with pytest.raises(LoadError, match="UTF-8"):
        load_recordings(str(path))
