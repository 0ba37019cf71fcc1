# reconcile.py — 上次快照 vs 磁盘现状：按“干净文件名”把播放位置续上
import os
from dataclasses import replace
from typing import Dict, List

from .filename_codec import clean_name, strip_extension
from .folder_scan import MainFolder, Subfolder, Video, scan, with_position


def _key(video: Video) -> str:
    # name 在扫描时已是干净名；旧快照里的 name 不一定可信，从 path 再算一遍
    if video.path:
        return clean_name(strip_extension(os.path.basename(video.path)))
    return video.name


def position_index(previous: MainFolder) -> Dict[str, int]:
    """干净文件名 -> lastPlayedPosition；同名多次出现时先到先得（根目录优先）。"""
    out: Dict[str, int] = {}
    for v in previous.all_videos():
        if v.last_played_position is None:
            continue
        out.setdefault(_key(v), v.last_played_position)
    return out


def _merge(videos: List[Video], positions: Dict[str, int]) -> List[Video]:
    merged = []
    for v in videos:
        # 文件名里已经编码了位置：以文件名为准
        if v.last_played_position is None and _key(v) in positions:
            v = with_position(v, positions[_key(v)])
        merged.append(v)
    return merged


def reconcile(previous: MainFolder) -> MainFolder:
    """
    重新扫描 previous.path，并把旧快照里的位置按身份键迁移到新扫描结果：
    - 已删除的文件自然消失；
    - 新文件不继承任何位置；
    - 被外部改名（去掉了前缀或改了名字）的文件，只有干净名完全相同才续上。
    不修改 previous。
    """
    positions = position_index(previous)
    fresh = scan(previous.path)
    return replace(
        fresh,
        videos_seq=_merge(fresh.videos_seq, positions),
        subfolders_with_videos=[
            Subfolder(name=sf.name, videos_seq=_merge(sf.videos_seq, positions))
            for sf in fresh.subfolders_with_videos
        ],
    )
