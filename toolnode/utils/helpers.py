"""
工具函数集合 - toolnode 项目通用的辅助函数。

函数分类：
- 路径管理：ensure_dir, get_data_path
- 时间工具：timestamp_ms
- 字符串工具：truncate_string
- 类型工具：get_base_classes
"""

import time
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """
    确保目录存在，不存在则递归创建。

    并发调用是安全的（exist_ok=True），重复创建不会报错。

    参数:
        path: 目标目录路径

    返回:
        创建后的目录路径（原样返回）
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """获取 toolnode 数据目录（~/.toolnode）。"""
    return Path.home() / ".toolnode"


def timestamp_ms() -> int:
    """获取当前 Unix 时间戳（毫秒）。"""
    return int(time.time() * 1000)


def truncate_string(s: str, max_len: int = 100, suffix: str = "...") -> str:
    """
    截断字符串到指定最大长度，超出时添加后缀。

    参数:
        s: 原始字符串
        max_len: 最大长度（包含后缀），默认 100
        suffix: 截断后缀，默认 "..."
    """
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix


def get_base_classes(cls: type) -> list[str]:
    """
    获取一个类及其所有父类的名称（按 MRO 顺序，排除 object 和 ABC）。

    节点描述用它生成 base_classes 能力标签，供宿主按能力发现/过滤节点。
    例: WriteFileTool → ["WriteFileTool", "Tool"]
    """
    return [c.__name__ for c in cls.__mro__ if c.__name__ not in ("object", "ABC")]
