# vidshelf/main.py — 本地视频书架 WebUI（文件名即元数据：index / 播放位置）
import os, mimetypes, re, logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from fastapi import FastAPI, Query, Request, HTTPException
from fastapi.responses import (
    FileResponse,
    StreamingResponse,
    HTMLResponse,
    Response,
    JSONResponse,
)
from fastapi.templating import Jinja2Templates

from . import file_ops
from .config_store import (
    ConfigStore, load_main_folder, set_main_folder, stored_main_folder, update_main_folder
)
from .errors import AccessDenied, NotFound, VidshelfError
from .models import (
    ConfigResponse, MainFolderOut, SetFolderRequest, PositionRequest, IndexRequest,
    MoveRequest, ReorderRequest, PathResponse, PathsResponse, MoveResponse
)
from .reconcile import reconcile
from .settings import (
    APP_DIR, CONFIG_PATH, DEFAULT_ROOT, SILENCE_MEDIA_LOGS, VIDEO_EXT, SUBTITLE_EXTS, CHUNK
)

logger = logging.getLogger(__name__)

store = ConfigStore(CONFIG_PATH)

# ========= FastAPI 应用 =========
app = FastAPI(title="Vidshelf WebUI")
templates = Jinja2Templates(directory=os.path.join(APP_DIR, "templates"))

# 拖动进度条会触发大量 Range 请求：可选静音 /media/ 的 access log
if SILENCE_MEDIA_LOGS:
    class _MediaFilter(logging.Filter):
        def filter(self, record):
            return "/media/" not in str(record.getMessage())
    logging.getLogger("uvicorn.access").addFilter(_MediaFilter())


@app.exception_handler(VidshelfError)
def _vidshelf_error(request: Request, exc: VidshelfError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse({"error": exc.code, "detail": exc.message}, status_code=exc.status_code)

@app.exception_handler(ValueError)
def _value_error(request: Request, exc: ValueError):
    logger.warning("%s %s -> bad-request: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": "bad-request", "detail": str(exc)}, status_code=400)


def _refresh_snapshot():
  """
  写操作成功后刷新 store 里的快照（对账，保留位置）。
  刷新失败不影响本次改名结果，只记日志。
  """
  previous = stored_main_folder(store)
  if previous is None:
    return
  try:
    update_main_folder(store, reconcile(previous))
  except (VidshelfError, OSError) as e:
    logger.warning("snapshot refresh failed for %s: %s", previous.path, e)


def _inside(real: str, root: str) -> bool:
  try:
    return os.path.commonpath([real, root]) == root
  except ValueError:  # 不同盘符
    return False

def _guard_video(path: str) -> str:
  """写操作只允许改当前根目录下的视频文件。"""
  folder = stored_main_folder(store)
  if folder is None:
    raise NotFound("no main folder selected", path)
  real = os.path.realpath(path)
  if not _inside(real, os.path.realpath(folder.path)) or not real.lower().endswith(VIDEO_EXT):
    raise AccessDenied(f"outside main folder: {path}", path)
  return os.path.abspath(path)

def _guard_subfolder_video(path: str) -> str:
  """跨列移动只接受 root/<子目录>/<文件>，目标目录由祖父目录推出。"""
  path = _guard_video(path)
  root = os.path.realpath(stored_main_folder(store).path)
  if os.path.dirname(os.path.dirname(os.path.realpath(path))) != root:
    raise AccessDenied(f"not inside a subfolder of the main folder: {path}", path)
  return path


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
  return templates.TemplateResponse(request, "index.html", {"video_ext": VIDEO_EXT})

# ========== 根目录 / 配置 ==========
@app.get("/api/config", response_model=ConfigResponse)
def api_load_config():
  """加载上次的根目录并与磁盘对账；首次启动可用 VIDSHELF_ROOT 预置。"""
  folder = load_main_folder(store)
  if folder is None and DEFAULT_ROOT:
    folder = set_main_folder(store, DEFAULT_ROOT)
  if folder is None:
    return ConfigResponse(mainFolder=None)
  return ConfigResponse(mainFolder=MainFolderOut.from_folder(folder))

@app.post("/api/folder", response_model=Optional[MainFolderOut])
def api_set_folder(req: SetFolderRequest):
  path = (req.path or "").strip()
  if not path:
    return None
  folder = set_main_folder(store, path)
  logger.info("main folder set: %s", folder.path)
  return MainFolderOut.from_folder(folder)

# ========== 写操作（改名） ==========
@app.post("/api/videos/position", response_model=PathResponse)
def api_rename_with_position(req: PositionRequest):
  new_path = file_ops.rename_with_position(_guard_video(req.path), req.position)
  _refresh_snapshot()
  return PathResponse(path=new_path)

@app.post("/api/videos/index", response_model=PathResponse)
def api_update_index(req: IndexRequest):
  new_path = file_ops.update_index(_guard_video(req.path), req.index, req.keep_position)
  _refresh_snapshot()
  return PathResponse(path=new_path)

@app.post("/api/videos/move", response_model=MoveResponse)
def api_move_between_folders(req: MoveRequest):
  path = _guard_subfolder_video(req.path)
  if req.position is None:
    res = {"path": file_ops.move_between_folders(path, req.target_folder)}
  else:
    res = file_ops.move_and_reindex(path, req.target_folder, req.position, req.keep_position)
  _refresh_snapshot()
  return MoveResponse(**res)

@app.post("/api/videos/reorder", response_model=PathsResponse)
def api_reorder(req: ReorderRequest):
  paths = file_ops.reorder([_guard_video(p) for p in req.paths], req.keep_position)
  _refresh_snapshot()
  return PathsResponse(paths=paths)

# =======================
# 媒体传输（视频 & 字幕）
# =======================
_range_re = re.compile(r"bytes=(\d*)-(\d*)$")

def _etag_for(path: str) -> str:
  st = os.stat(path)
  return f'W/"{st.st_ino}-{st.st_size}-{int(st.st_mtime)}"'

def _last_modified_str(path: str) -> str:
  st = os.stat(path)
  dt = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
  return dt.strftime("%a, %d %b %Y %H:%M:%S GMT")

def _parse_range_header(range_header: str, file_size: int):
  if not range_header:
    return None, None
  if "," in range_header:
    return None, "MULTI"
  m = _range_re.match(range_header.strip())
  if not m:
    return None, "BAD"
  start_s, end_s = m.groups()
  if start_s == "" and end_s == "":
    return None, "BAD"
  if start_s == "":  # bytes=-N
    length = int(end_s or "0")
    if length <= 0:
      return None, "BAD"
    start = max(0, file_size - length)
    end = file_size - 1
  else:
    start = int(start_s)
    end = int(end_s) if end_s else file_size - 1
  if start >= file_size:
    return None, "OUT"
  end = min(end, file_size - 1)
  if start > end:
    return None, "BAD"
  return (start, end), None

def _resolve_media(path: str, exts) -> str:
  """只允许读取当前根目录下、扩展名在白名单内的文件。"""
  folder = stored_main_folder(store)
  if folder is None:
    raise HTTPException(404, detail="no-main-folder")
  real = os.path.realpath(path)
  if not _inside(real, os.path.realpath(folder.path)) or not real.lower().endswith(tuple(exts)):
    raise HTTPException(403, detail="outside-main-folder")
  if not os.path.isfile(real):
    raise HTTPException(404, detail="video-not-found")
  return real

@app.get("/media/video")
def media_video(request: Request, path: str = Query(..., description="视频绝对路径")):
  path = _resolve_media(path, (VIDEO_EXT,))
  file_size = os.path.getsize(path)
  mime, _ = mimetypes.guess_type(path)
  mime = mime or "video/mp4"

  etag = _etag_for(path)
  last_mod = _last_modified_str(path)
  # 改名会换路径：缓存按路径走，no-cache + ETag 校验即可
  cache_headers = {
    "ETag": etag,
    "Last-Modified": last_mod,
    "Accept-Ranges": "bytes",
    "Cache-Control": "no-cache",
  }

  inm = request.headers.get("if-none-match")
  ims = request.headers.get("if-modified-since")
  if inm == etag:
    return Response(status_code=304, headers=cache_headers)
  if ims and not inm:
    try:
      ims_dt = parsedate_to_datetime(ims)
      if int(os.stat(path).st_mtime) <= int(ims_dt.timestamp()):
        return Response(status_code=304, headers=cache_headers)
    except (TypeError, ValueError):
      pass

  range_header = request.headers.get("range")
  rng, err = _parse_range_header(range_header, file_size) if range_header else (None, None)

  if not rng:
    if err in ("MULTI", "BAD", "OUT"):
      return Response(status_code=416, headers={
        "Content-Range": f"bytes */{file_size}",
        "Accept-Ranges": "bytes",
        "ETag": etag,
        "Last-Modified": last_mod,
      })
    return FileResponse(path, media_type=mime, headers=cache_headers)

  start, end = rng
  length = end - start + 1

  def iterfile():
    with open(path, "rb") as f:
      f.seek(start)
      remaining = length
      while remaining > 0:
        data = f.read(min(CHUNK, remaining))
        if not data: break
        remaining -= len(data)
        yield data

  headers = dict(cache_headers)
  headers.update({
    "Content-Range": f"bytes {start}-{end}/{file_size}",
    "Content-Length": str(length),
  })
  return StreamingResponse(iterfile(), status_code=206, headers=headers, media_type=mime)

@app.get("/media/subtitle")
def media_subtitle(path: str = Query(..., description="字幕绝对路径")):
  path = _resolve_media(path, SUBTITLE_EXTS)
  media_type = "text/vtt" if path.lower().endswith(".vtt") else "text/plain"
  return FileResponse(path, media_type=media_type, headers={"Cache-Control": "no-cache"})

@app.get("/health")
def health():
  folder = stored_main_folder(store)
  root = folder.path if folder else ""
  return {
    "config_path": store.path,
    "config_exists": os.path.isfile(store.path),
    "main_folder": root,
    "main_folder_exists": bool(root) and os.path.isdir(root),
  }
