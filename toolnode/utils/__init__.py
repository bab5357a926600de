"""工具函数模块"""

from toolnode.utils.helpers import ensure_dir, get_data_path

__all__ = ["ensure_dir", "get_data_path"]
