# filename_codec.py — 文件名前缀编解码
#
#   "[<index> ][<MM:SS> ]<name>.mp4"
#
# index 用于列内排序，MM:SS 是上次播放位置。两者都是可选前缀，
# 解析失败一律视为“没有元数据”，从不抛异常。
import os
import re
from dataclasses import dataclass
from typing import Optional

_INDEX_RE = re.compile(r"^(\d+)\s+(.+)$")
# 分钟不设上限：encode_time(6000) == "100:00"，必须能解回来
_TIME_RE = re.compile(r"^(\d{2,}):(\d{2})\s+(.+)$")


@dataclass
class Decoded:
    name: str
    position: Optional[int] = None
    index: Optional[int] = None
    index_prefix: str = ""   # 原样保留的 index 文本（如 "007"）
    time_prefix: str = ""


def strip_extension(filename: str) -> str:
    return os.path.splitext(filename)[0]


def encode_time(seconds) -> str:
    """秒 -> "MM:SS"；分钟至少两位、不封顶，小数秒截断。"""
    if seconds is None or seconds < 0:
        raise ValueError(f"position must be a non-negative number, got {seconds!r}")
    s = int(seconds)
    return f"{s // 60:02d}:{s % 60:02d}"


def decode_time(base: str) -> Decoded:
    m = _TIME_RE.match(base)
    if not m:
        return Decoded(name=base)
    minutes, secs, rest = m.groups()
    return Decoded(
        name=rest,
        position=int(minutes) * 60 + int(secs),
        time_prefix=f"{minutes}:{secs}",
    )


def decode_index_and_time(base: str) -> Decoded:
    """
    固定顺序：先剥 index，再对剩余部分剥 MM:SS。
    "3 01:30 clip" -> Decoded(name="clip", position=90, index=3)
    """
    index = None
    index_prefix = ""
    rest = base
    m = _INDEX_RE.match(base)
    if m:
        index_prefix, rest = m.groups()
        index = int(index_prefix)
    d = decode_time(rest)
    d.index = index
    d.index_prefix = index_prefix
    return d


def clean_name(base: str) -> str:
    """去掉所有编码前缀后的名字，对账时的身份键。"""
    return decode_index_and_time(base).name


def filename_with_position(filename: str, seconds) -> str:
    """
    "[index ]MM:SS name.ext"：替换（或新增）时间前缀，index 前缀原样保留。
    """
    base, ext = os.path.splitext(filename)
    d = decode_index_and_time(base)
    head = f"{d.index_prefix} " if d.index_prefix else ""
    return f"{head}{encode_time(seconds)} {d.name}{ext}"


def filename_with_index(filename: str, index: int, keep_position: bool = True) -> str:
    """
    "index [MM:SS ]name.ext"：替换（或新增）index 前缀。
    keep_position=False 时一并丢弃时间前缀（旧版行为）。
    """
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        raise ValueError(f"index must be a positive integer, got {index!r}")
    base, ext = os.path.splitext(filename)
    d = decode_index_and_time(base)
    mid = f"{d.time_prefix} " if (keep_position and d.time_prefix) else ""
    return f"{index} {mid}{d.name}{ext}"
