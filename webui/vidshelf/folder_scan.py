# folder_scan.py — 根目录 + 一层子目录的视频扫描
import os
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .errors import NotFound, from_os_error
from .filename_codec import decode_index_and_time, strip_extension
from .settings import SUBTITLE_EXTS, VIDEO_EXT


def _stored_int(value, minimum: int) -> Optional[int]:
    """
    store 可能被手工改过：浮点数截断为整数，非数字或越界一律丢弃（视为没有元数据）。
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    value = int(value)
    return value if value >= minimum else None


@dataclass
class Video:
    name: str
    path: str
    last_played_position: Optional[int] = None
    index: Optional[int] = None
    subtitle_path: Optional[str] = None

    def to_dict(self) -> dict:
        d = {"name": self.name, "path": self.path}
        if self.last_played_position is not None:
            d["lastPlayedPosition"] = self.last_played_position
        if self.index is not None:
            d["index"] = self.index
        if self.subtitle_path:
            d["subtitlePath"] = self.subtitle_path
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Video":
        return cls(
            name=str(d.get("name") or ""),
            path=str(d.get("path") or ""),
            last_played_position=_stored_int(d.get("lastPlayedPosition"), minimum=0),
            index=_stored_int(d.get("index"), minimum=1),
            subtitle_path=d.get("subtitlePath") if isinstance(d.get("subtitlePath"), str) else None,
        )


@dataclass
class Subfolder:
    name: str
    videos_seq: List[Video] = field(default_factory=list)


@dataclass
class MainFolder:
    path: str
    videos_seq: List[Video] = field(default_factory=list)
    subfolders_with_videos: List[Subfolder] = field(default_factory=list)
    sub_subfolder_names: List[str] = field(default_factory=list)

    def all_videos(self) -> List[Video]:
        out = list(self.videos_seq)
        for sf in self.subfolders_with_videos:
            out.extend(sf.videos_seq)
        return out

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "videosSeq": [v.to_dict() for v in self.videos_seq],
            "subfoldersWithVideos": [
                {"name": sf.name, "videosSeq": [v.to_dict() for v in sf.videos_seq]}
                for sf in self.subfolders_with_videos
            ],
            "subSubfolderNames": list(self.sub_subfolder_names),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "MainFolder":
        """旧版 store 里可能只有 {path}，缺的键一律当空。"""
        subs = []
        for sf in d.get("subfoldersWithVideos") or []:
            if not isinstance(sf, dict):
                continue
            subs.append(Subfolder(
                name=sf.get("name", ""),
                videos_seq=[Video.from_dict(v) for v in (sf.get("videosSeq") or []) if isinstance(v, dict)],
            ))
        return cls(
            path=d.get("path", ""),
            videos_seq=[Video.from_dict(v) for v in (d.get("videosSeq") or []) if isinstance(v, dict)],
            subfolders_with_videos=subs,
            sub_subfolder_names=[str(x) for x in (d.get("subSubfolderNames") or [])],
        )


def safe_join(*parts) -> str:
    return os.path.normpath(os.path.join(*parts))


def _visible(entry: os.DirEntry) -> bool:
    return not entry.name.startswith(".")


def _list_entries(folder: str) -> List[os.DirEntry]:
    """
    os.scandir 列目录（不跟随符号链接），按名字排序。
    readdir 的顺序随文件系统而变，排序后同一目录两次扫描结果一致。
    """
    try:
        with os.scandir(folder) as it:
            entries = [e for e in it if _visible(e)]
    except OSError as e:
        raise from_os_error(e, folder, fallback=NotFound)
    entries.sort(key=lambda e: e.name)
    return entries


def _is_video(entry: os.DirEntry) -> bool:
    return entry.is_file(follow_symlinks=False) and entry.name.lower().endswith(VIDEO_EXT)


def find_subtitle(video_path: str, siblings: Optional[set] = None) -> Optional[str]:
    """同目录、同 stem 的 .vtt / .srt（按 SUBTITLE_EXTS 顺序取第一个）。"""
    folder, filename = os.path.split(video_path)
    stem = strip_extension(filename)
    for ext in SUBTITLE_EXTS:
        cand = stem + ext
        if siblings is not None:
            if cand in siblings:
                return safe_join(folder, cand)
        elif os.path.isfile(safe_join(folder, cand)):
            return safe_join(folder, cand)
    return None


def video_from_path(path: str, siblings: Optional[set] = None) -> Video:
    d = decode_index_and_time(strip_extension(os.path.basename(path)))
    return Video(
        name=d.name,
        path=path,
        last_played_position=d.position,
        index=d.index,
        subtitle_path=find_subtitle(path, siblings),
    )


def order_videos(videos: List[Video]) -> List[Video]:
    """
    任意一个视频带 index 时按 index 升序；没有 index 的排在后面，
    彼此之间保持原顺序（sorted 是稳定的）。
    """
    if not any(v.index is not None for v in videos):
        return list(videos)
    return sorted(videos, key=lambda v: (v.index is None, v.index or 0))


def load_videos_from_folder(folder: str) -> List[Video]:
    folder = os.path.abspath(folder)
    entries = _list_entries(folder)
    names = {e.name for e in entries}
    videos = [video_from_path(safe_join(folder, e.name), names) for e in entries if _is_video(e)]
    return order_videos(videos)


def _subdirs(folder: str) -> List[os.DirEntry]:
    return [e for e in _list_entries(folder) if e.is_dir(follow_symlinks=False)]


def scan_subfolders_with_videos(root: str) -> List[Subfolder]:
    root = os.path.abspath(root)
    return [
        Subfolder(name=e.name, videos_seq=load_videos_from_folder(safe_join(root, e.name)))
        for e in _subdirs(root)
    ]


def find_sub_subfolder_names(root: str) -> List[str]:
    """只报告“子目录里还有目录”的一级子目录名，不往下扫。"""
    root = os.path.abspath(root)
    return [e.name for e in _subdirs(root) if _subdirs(safe_join(root, e.name))]


def scan(root_path: str) -> MainFolder:
    """
    root_path 不存在 / 不是目录 -> NotFound；无权限 -> AccessDenied。
    任一步失败整体抛出，不返回半成品。
    """
    if not root_path:
        raise NotFound("root path is empty", root_path)
    root = os.path.abspath(root_path)
    if not os.path.isdir(root):
        if os.path.exists(root):
            raise NotFound(f"not a directory: {root}", root)
        raise NotFound(f"not found: {root}", root)

    return MainFolder(
        path=root,
        videos_seq=load_videos_from_folder(root),
        subfolders_with_videos=scan_subfolders_with_videos(root),
        sub_subfolder_names=find_sub_subfolder_names(root),
    )


def with_position(video: Video, position: Optional[int]) -> Video:
    return replace(video, last_played_position=position)

