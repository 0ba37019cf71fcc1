#!/usr/bin/env python3
"""Tests for filename-rewriting mutation operations."""
import os

import pytest

from vidshelf import file_ops
from vidshelf.errors import AccessDenied, NotFound, RenameFailed
from vidshelf.folder_scan import load_videos_from_folder

from conftest import make_video


def test_rename_with_position(tmp_path):
    original = make_video(tmp_path / "test.mp4")
    new_path = file_ops.rename_with_position(str(original), 120)

    assert not original.exists()
    assert os.path.exists(new_path)
    assert os.path.basename(new_path) == "02:00 test.mp4"
    assert os.path.dirname(new_path) == str(tmp_path)


def test_rename_replaces_existing_position(tmp_path):
    positioned = make_video(tmp_path / "01:30 positioned_video.mp4")
    new_path = file_ops.rename_with_position(str(positioned), 240)
    assert not positioned.exists()
    assert os.path.basename(new_path) == "04:00 positioned_video.mp4"


def test_rename_keeps_index_prefix(tmp_path):
    v = make_video(tmp_path / "03 clip.mp4")
    new_path = file_ops.rename_with_position(str(v), 61.7)
    assert os.path.basename(new_path) == "03 01:01 clip.mp4"


def test_rename_same_name_is_noop(tmp_path):
    v = make_video(tmp_path / "00:10 clip.mp4")
    assert file_ops.rename_with_position(str(v), 10) == str(v)
    assert v.exists()


def test_rename_missing_file(tmp_path):
    with pytest.raises(NotFound):
        file_ops.rename_with_position(str(tmp_path / "nope.mp4"), 5)


def test_rename_never_overwrites(tmp_path):
    v = make_video(tmp_path / "clip.mp4", b"a")
    other = make_video(tmp_path / "00:05 clip.mp4", b"b")
    with pytest.raises(RenameFailed):
        file_ops.rename_with_position(str(v), 5)
    assert v.read_bytes() == b"a"
    assert other.read_bytes() == b"b"


def test_rename_permission_error(tmp_path, monkeypatch):
    v = make_video(tmp_path / "clip.mp4")

    def deny(src, dst):
        raise PermissionError(13, "Permission denied", src)

    monkeypatch.setattr(os, "rename", deny)
    with pytest.raises(AccessDenied):
        file_ops.rename_with_position(str(v), 5)


def test_rename_os_error_is_rename_failed(tmp_path, monkeypatch):
    v = make_video(tmp_path / "clip.mp4")

    def cross_device(src, dst):
        raise OSError(18, "Invalid cross-device link", src)

    monkeypatch.setattr(os, "rename", cross_device)
    with pytest.raises(RenameFailed):
        file_ops.rename_with_position(str(v), 5)


def test_rename_negative_position(tmp_path):
    v = make_video(tmp_path / "clip.mp4")
    with pytest.raises(ValueError):
        file_ops.rename_with_position(str(v), -3)
    assert v.exists()


def test_subtitle_follows_video(tmp_path):
    v = make_video(tmp_path / "clip.mp4")
    sub = make_video(tmp_path / "clip.srt", b"1\n00:00:00,000 --> 00:00:01,000\nhi\n")
    new_path = file_ops.rename_with_position(str(v), 30)
    assert not sub.exists()
    assert (tmp_path / "00:30 clip.srt").exists()
    assert os.path.basename(new_path) == "00:30 clip.mp4"


def test_update_index(tmp_path):
    v = make_video(tmp_path / "01:30 clip.mp4")
    new_path = file_ops.update_index(str(v), 2)
    assert os.path.basename(new_path) == "2 01:30 clip.mp4"

    newer = file_ops.update_index(new_path, 5, keep_position=False)
    assert os.path.basename(newer) == "5 clip.mp4"
    assert not os.path.exists(new_path)


def test_update_index_rejects_zero(tmp_path):
    v = make_video(tmp_path / "clip.mp4")
    with pytest.raises(ValueError):
        file_ops.update_index(str(v), 0)


def test_move_between_folders(library):
    src = library / "subfolder1" / "video3.mp4"
    new_path = file_ops.move_between_folders(str(src), "subfolder2")
    assert new_path == str(library / "subfolder2" / "video3.mp4")
    assert not src.exists()
    assert os.path.exists(new_path)


def test_move_to_missing_folder(library):
    src = library / "subfolder1" / "video3.mp4"
    with pytest.raises(NotFound):
        file_ops.move_between_folders(str(src), "nowhere")
    assert src.exists()


@pytest.mark.parametrize("name", ["", "..", "a/b"])
def test_move_rejects_bad_folder_names(library, name):
    with pytest.raises(ValueError):
        file_ops.move_between_folders(str(library / "subfolder1" / "video3.mp4"), name)


def test_move_collision(library):
    make_video(library / "subfolder2" / "video3.mp4")
    with pytest.raises(RenameFailed):
        file_ops.move_between_folders(str(library / "subfolder1" / "video3.mp4"), "subfolder2")


def test_reorder_writes_contiguous_indices(tmp_path):
    a = make_video(tmp_path / "7 a.mp4")
    b = make_video(tmp_path / "b.mp4")
    c = make_video(tmp_path / "3 00:40 c.mp4")

    new_paths = file_ops.reorder([str(c), str(a), str(b)])
    assert [os.path.basename(p) for p in new_paths] == ["1 00:40 c.mp4", "2 a.mp4", "3 b.mp4"]
    videos = load_videos_from_folder(str(tmp_path))
    assert [(v.name, v.index) for v in videos] == [("c", 1), ("a", 2), ("b", 3)]


def test_move_and_reindex(library):
    src = library / "subfolder1" / "video3.mp4"
    res = file_ops.move_and_reindex(str(src), "subfolder2", position=0)

    assert os.path.basename(res["path"]) == "1 video3.mp4"
    assert [os.path.basename(p) for p in res["source"]] == ["1 video4.mp4"]
    assert [os.path.basename(p) for p in res["target"]] == ["1 video3.mp4", "2 video5.mp4"]
    assert sorted(os.listdir(library / "subfolder1")) == ["1 video4.mp4"]
    assert sorted(os.listdir(library / "subfolder2")) == ["1 video3.mp4", "2 video5.mp4"]


def test_move_and_reindex_appends_by_default(library):
    res = file_ops.move_and_reindex(str(library / "subfolder1" / "video4.mp4"), "subfolder2")
    assert [os.path.basename(p) for p in res["target"]] == ["1 video5.mp4", "2 video4.mp4"]
    assert res["path"] == res["target"][-1]


def test_reorder_swaps_same_clean_name(tmp_path):
    first = make_video(tmp_path / "1 clip.mp4", b"first")
    second = make_video(tmp_path / "2 clip.mp4", b"second")

    new_paths = file_ops.reorder([str(second), str(first)])
    assert [os.path.basename(p) for p in new_paths] == ["1 clip.mp4", "2 clip.mp4"]
    assert (tmp_path / "1 clip.mp4").read_bytes() == b"second"
    assert (tmp_path / "2 clip.mp4").read_bytes() == b"first"
    assert sorted(os.listdir(tmp_path)) == ["1 clip.mp4", "2 clip.mp4"]


def test_reorder_failure_restores_original_names(tmp_path):
    a = make_video(tmp_path / "a.mp4", b"a")
    b = make_video(tmp_path / "b.mp4", b"b")
    make_video(tmp_path / "2 b.mp4", b"blocker")

    with pytest.raises(RenameFailed):
        file_ops.reorder([str(a), str(b)])
    assert sorted(os.listdir(tmp_path)) == ["1 a.mp4", "2 b.mp4", "b.mp4"]
    assert (tmp_path / "b.mp4").read_bytes() == b"b"
    assert (tmp_path / "2 b.mp4").read_bytes() == b"blocker"


def test_reorder_rejects_duplicates(tmp_path):
    a = make_video(tmp_path / "a.mp4")
    with pytest.raises(ValueError):
        file_ops.reorder([str(a), str(a)])
    assert a.exists()
