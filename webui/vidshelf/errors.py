# errors.py — 文件系统失败统一打标签，上层（HTTP）负责展示
import errno
from typing import Optional


class VidshelfError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path


class NotFound(VidshelfError):
    status_code = 404
    code = "not-found"


class AccessDenied(VidshelfError):
    status_code = 403
    code = "access-denied"


class RenameFailed(VidshelfError):
    status_code = 409
    code = "rename-failed"


def from_os_error(exc: OSError, path: str, fallback=RenameFailed) -> VidshelfError:
    """
    把 OSError 映射到本项目的错误分类：
    - FileNotFoundError / ENOENT / ENOTDIR -> NotFound
    - PermissionError / EACCES / EPERM    -> AccessDenied
    - 其它                                -> fallback（默认 RenameFailed）
    """
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)) or exc.errno in (errno.ENOENT, errno.ENOTDIR):
        return NotFound(f"not found: {path}", path)
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return AccessDenied(f"access denied: {path}", path)
    return fallback(f"{exc.strerror or exc}: {path}", path)
