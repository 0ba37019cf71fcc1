# file_ops.py — 写操作：所有元数据都落在文件名上，磁盘上的名字就是唯一真相
#
# 每个操作只做一次 os.rename 并返回新路径；调用方拿到新路径后再更新内存里的模型。
import logging
import os
import threading
from typing import List, Optional

from .errors import NotFound, RenameFailed, VidshelfError, from_os_error
from .filename_codec import filename_with_index, filename_with_position, strip_extension
from .folder_scan import find_subtitle, load_videos_from_folder, safe_join

logger = logging.getLogger(__name__)

_WRITE_LOCK = threading.Lock()


def _require_file(path: str) -> str:
    path = os.path.abspath(path)
    if not os.path.isfile(path):
        raise NotFound(f"video not found: {path}", path)
    return path


def _carry_subtitle(old_path: str, new_path: str) -> None:
    """视频改名成功后，把同 stem 的字幕一起改名；失败只记日志。"""
    sub = find_subtitle(old_path)
    if not sub:
        return
    new_stem = strip_extension(os.path.basename(new_path))
    new_sub = safe_join(os.path.dirname(new_path), new_stem + os.path.splitext(sub)[1])
    if os.path.exists(new_sub):
        logger.warning("subtitle target exists, left as is: %s", new_sub)
        return
    try:
        os.rename(sub, new_sub)
    except OSError as e:
        logger.warning("subtitle rename failed %s -> %s: %s", sub, new_sub, e)


def _rename(path: str, new_path: str) -> str:
    if new_path == path:
        return path
    with _WRITE_LOCK:
        # 不覆盖已有文件（os.rename 在 POSIX 上会静默覆盖）
        if os.path.exists(new_path):
            raise RenameFailed(f"target already exists: {new_path}", new_path)
        try:
            os.rename(path, new_path)
        except OSError as e:
            raise from_os_error(e, path)
        _carry_subtitle(path, new_path)
    return new_path


def rename_with_position(path: str, position) -> str:
    """'[index ]name.mp4' -> '[index ]MM:SS name.mp4'"""
    path = _require_file(path)
    folder, filename = os.path.split(path)
    return _rename(path, safe_join(folder, filename_with_position(filename, position)))


def update_index(path: str, index: int, keep_position: bool = True) -> str:
    """'[index ][MM:SS ]name.mp4' -> 'index [MM:SS ]name.mp4'"""
    path = _require_file(path)
    folder, filename = os.path.split(path)
    return _rename(path, safe_join(folder, filename_with_index(filename, index, keep_position)))


def _check_folder_name(name: str) -> str:
    name = (name or "").strip()
    if not name or name in (".", "..") or "/" in name or os.sep in name:
        raise ValueError(f"invalid folder name: {name!r}")
    return name


def move_between_folders(path: str, target_folder_name: str) -> str:
    """
    root/A/file.mp4 -> root/B/file.mp4
    目标目录由 path 的祖父目录推出（假定 path 恰好在根目录下两级）。
    """
    path = _require_file(path)
    target_folder_name = _check_folder_name(target_folder_name)
    grandparent = os.path.dirname(os.path.dirname(path))
    target_dir = safe_join(grandparent, target_folder_name)
    if not os.path.isdir(target_dir):
        raise NotFound(f"target folder not found: {target_dir}", target_dir)
    return _rename(path, safe_join(target_dir, os.path.basename(path)))


def reorder(paths: List[str], keep_position: bool = True) -> List[str]:
    """
    按给定顺序写入连续的 1..N index，返回新路径（顺序与入参一致）。
    两阶段改名：先全部改成隐藏的临时名，再改成最终名，
    "2 clip.mp4" / "1 clip.mp4" 这种干净名相同的文件互换时不会撞名。
    第二阶段失败时，尚未落定的临时文件改回原名。
    """
    paths = [_require_file(p) for p in paths]
    if len(set(paths)) != len(paths):
        raise ValueError("duplicate paths in reorder")
    targets = [
        safe_join(os.path.dirname(p), filename_with_index(os.path.basename(p), i, keep_position))
        for i, p in enumerate(paths, start=1)
    ]

    staged = []
    done: List[str] = []
    try:
        for i, p in enumerate(paths, start=1):
            tmp = safe_join(os.path.dirname(p), f".reorder-{i}-{os.path.basename(p)}")
            staged.append((p, _rename(p, tmp)))
        for (_, tmp), target in zip(staged, targets):
            done.append(_rename(tmp, target))
    except VidshelfError:
        for orig, tmp in staged[len(done):]:
            try:
                _rename(tmp, orig)
            except VidshelfError as e:
                logger.warning("reorder rollback failed %s -> %s: %s", tmp, orig, e)
        raise
    return done


def move_and_reindex(path: str, target_folder_name: str, position: Optional[int] = None,
                     keep_position: bool = True) -> dict:
    """
    跨列移动：先移动文件，再把源目录、目标目录各自重排为 1..N。
    position 为移入目标列后的下标（从 0 开始），缺省追加到末尾。
    """
    src_dir = os.path.dirname(os.path.abspath(path))
    moved = move_between_folders(path, target_folder_name)

    source_paths = [v.path for v in load_videos_from_folder(src_dir)]
    target_paths = [v.path for v in load_videos_from_folder(os.path.dirname(moved)) if v.path != moved]
    at = len(target_paths) if position is None else max(0, min(position, len(target_paths)))
    target_paths.insert(at, moved)

    new_source = reorder(source_paths, keep_position)
    new_target = reorder(target_paths, keep_position)
    return {"path": new_target[at], "source": new_source, "target": new_target}
