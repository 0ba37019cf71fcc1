# vidshelf — 本地视频书架（文件名即元数据）
__version__ = "0.3.0"
