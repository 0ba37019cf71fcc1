# settings.py — 环境变量配置（导入时读取）
import os

APP_DIR  = os.path.dirname(__file__)
DATA_DIR = os.getenv("VIDSHELF_DATA_DIR", os.path.join(APP_DIR, "data"))
os.makedirs(DATA_DIR, exist_ok=True)

# 持久化：只存 mainFolder 快照，加载时与磁盘对账
CONFIG_PATH = os.getenv("VIDSHELF_CONFIG", os.path.join(DATA_DIR, "config.json"))

# 首次启动且 store 为空时自动选中的根目录（可选）
DEFAULT_ROOT = os.getenv("VIDSHELF_ROOT", "")

# 静音 /media/ 的 access log（拖动进度条时 Range 请求很多）
SILENCE_MEDIA_LOGS = os.getenv("VIDSHELF_SILENCE_MEDIA_LOGS", "1") == "1"

VIDEO_EXT     = ".mp4"
SUBTITLE_EXTS = (".vtt", ".srt")
CHUNK         = 8 * 1024 * 1024  # LAN 下更大的块

HOST = os.getenv("VIDSHELF_HOST", "127.0.0.1")
PORT = int(os.getenv("VIDSHELF_PORT", "8000"))
