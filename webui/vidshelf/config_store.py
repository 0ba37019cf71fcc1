# config_store.py — 极简 JSON 键值存储（替代桌面版的 electron-conf）
#
# 只保存 mainFolder 快照；每次加载都与磁盘对账，磁盘上的文件名才是真相。
import json
import logging
import os
import shutil
import threading
from typing import Any, Optional

from .folder_scan import MainFolder, scan
from .reconcile import reconcile

logger = logging.getLogger(__name__)

MAIN_FOLDER_KEY = "mainFolder"


class ConfigStore:
    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not os.path.isfile(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            # 配置坏了也要能启动：当作空 store，下一次写入会覆盖（旧文件留在 .bak）
            logger.warning("config unreadable, starting empty: %s (%s)", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        """
        先备份 .bak，再写临时文件，最后原子替换。
        任一步失败直接抛出；原文件与 .bak 均保留。
        """
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        tmp_file = self.path + ".tmp"
        bak_file = self.path + ".bak"
        if os.path.isfile(self.path):
            shutil.copy2(self.path, bak_file)
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_file, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> Any:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)
        return value

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                data.pop(key)
                self._write(data)


def stored_main_folder(store: ConfigStore) -> Optional[MainFolder]:
    raw = store.get(MAIN_FOLDER_KEY)
    if not isinstance(raw, dict) or not raw.get("path"):
        return None
    return MainFolder.from_dict(raw)


def update_main_folder(store: ConfigStore, folder: MainFolder) -> MainFolder:
    store.set(MAIN_FOLDER_KEY, folder.to_dict())
    return folder


def set_main_folder(store: ConfigStore, root_path: str) -> MainFolder:
    """选中新根目录：全量扫描后替换 store 里原有的记录。"""
    return update_main_folder(store, scan(root_path))


def load_main_folder(store: ConfigStore) -> Optional[MainFolder]:
    """
    读取上次的快照并对账；store 为空返回 None。
    根目录已不存在时抛 NotFound，store 保持不变（用户可能只是没插移动硬盘）。
    """
    previous = stored_main_folder(store)
    if previous is None:
        return None
    return update_main_folder(store, reconcile(previous))
