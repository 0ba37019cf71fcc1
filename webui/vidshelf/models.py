# models.py — API 出入参（字段别名与 store 中的 camelCase 一致）
from pydantic import BaseModel, Field
from typing import List, Optional

from .folder_scan import MainFolder


class VideoOut(BaseModel):
    name: str
    path: str
    last_played_position: Optional[int] = Field(None, alias="lastPlayedPosition")
    index: Optional[int] = None
    subtitle_path: Optional[str] = Field(None, alias="subtitlePath")

class SubfolderOut(BaseModel):
    name: str
    videos_seq: List[VideoOut] = Field(default_factory=list, alias="videosSeq")

class MainFolderOut(BaseModel):
    path: str
    videos_seq: List[VideoOut] = Field(default_factory=list, alias="videosSeq")
    subfolders_with_videos: List[SubfolderOut] = Field(default_factory=list, alias="subfoldersWithVideos")
    sub_subfolder_names: List[str] = Field(default_factory=list, alias="subSubfolderNames")

    @classmethod
    def from_folder(cls, folder: MainFolder) -> "MainFolderOut":
        return cls.model_validate(folder.to_dict())

class ConfigResponse(BaseModel):
    main_folder: Optional[MainFolderOut] = Field(None, alias="mainFolder")

class SetFolderRequest(BaseModel):
    path: Optional[str] = None  # 为空 = 用户取消了选择

class PositionRequest(BaseModel):
    path: str
    position: float = Field(ge=0)

class IndexRequest(BaseModel):
    path: str
    index: int = Field(ge=1)
    keep_position: bool = True

class MoveRequest(BaseModel):
    path: str
    target_folder: str
    position: Optional[int] = Field(None, ge=0)  # 给出时顺带重排源/目标两列
    keep_position: bool = True

class ReorderRequest(BaseModel):
    paths: List[str]
    keep_position: bool = True

class PathResponse(BaseModel):
    path: str

class PathsResponse(BaseModel):
    paths: List[str]

class MoveResponse(BaseModel):
    path: str
    source: List[str] = Field(default_factory=list)
    target: List[str] = Field(default_factory=list)
