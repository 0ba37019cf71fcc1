from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

# settings.py 在导入时读取环境变量并创建目录：必须在导入 vidshelf 之前指向临时目录
_DATA_DIR = tempfile.mkdtemp(prefix="vidshelf-test-")
os.environ.setdefault("VIDSHELF_DATA_DIR", _DATA_DIR)
os.environ.setdefault("VIDSHELF_CONFIG", os.path.join(_DATA_DIR, "config.json"))
os.environ.setdefault("VIDSHELF_ROOT", "")


def make_video(path: Path, content: bytes = b"test video content") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """
    main/
      video1.mp4
      video2.mp4
      subfolder1/video3.mp4, video4.mp4
      subfolder2/video5.mp4
    """
    main = tmp_path / "main"
    make_video(main / "video1.mp4")
    make_video(main / "video2.mp4")
    make_video(main / "subfolder1" / "video3.mp4")
    make_video(main / "subfolder1" / "video4.mp4")
    make_video(main / "subfolder2" / "video5.mp4")
    return main
