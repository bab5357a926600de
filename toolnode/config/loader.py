"""
配置加载工具模块 (config/loader.py)
=================================
本模块负责 toolnode 配置文件的加载、保存和格式转换：
- 配置文件默认路径: ~/.toolnode/config.json
- 配置文件使用 camelCase（驼峰命名），Python 内部使用 snake_case（下划线命名）
- 加载时自动将 camelCase → snake_case，保存时自动将 snake_case → camelCase
- credentials 子树原样保留：其中的键是凭证参数名（如 openAIApiKey），不能改写
"""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from toolnode.config.schema import Config
from toolnode.utils.helpers import get_data_path

# 键名保持原样、不做大小写转换的顶层配置段
_VERBATIM_SECTIONS = ("credentials",)


def get_config_path() -> Path:
    """获取默认配置文件路径: ~/.toolnode/config.json"""
    return get_data_path() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    从 JSON 文件加载配置，若文件不存在则返回默认配置。

    加载流程：
    1. 确定配置文件路径（传入的路径 或 默认路径 ~/.toolnode/config.json）
    2. 读取 JSON 文件内容
    3. 将 camelCase 键名转换为 snake_case（credentials 段除外）
    4. 使用 Pydantic 的 model_validate 进行类型验证和反序列化

    参数:
        config_path: 可选的配置文件路径。为 None 时使用默认路径。

    返回:
        Config 配置对象实例
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root must be a JSON object")
            return Config.model_validate(_convert_sections(data, camel_to_snake, convert_keys))
        except (json.JSONDecodeError, ValueError) as e:
            # 配置文件损坏时降级使用默认配置，而非直接报错退出
            logger.warning(f"Failed to load config from {path}: {e}. Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    将配置对象保存为 JSON 文件（camelCase 键名，带缩进格式化）。

    参数:
        config: 要保存的配置对象
        config_path: 可选的保存路径。为 None 时使用默认路径。
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _convert_sections(config.model_dump(), snake_to_camel, convert_to_camel)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def _convert_sections(data: dict, convert_key, convert_tree) -> dict:
    """对顶层各配置段执行键名转换，跳过 _VERBATIM_SECTIONS 中列出的段。"""
    result = {}
    for key, value in data.items():
        new_key = convert_key(key)
        result[new_key] = value if new_key in _VERBATIM_SECTIONS else convert_tree(value)
    return result


def convert_keys(data: Any) -> Any:
    """
    递归地将字典中所有 camelCase 键名转换为 snake_case。

    示例: {"outputDir": "./audio"} → {"output_dir": "./audio"}
    """
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """
    递归地将字典中所有 snake_case 键名转换为 camelCase。

    示例: {"output_dir": "./audio"} → {"outputDir": "./audio"}
    """
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """
    将 camelCase 字符串转换为 snake_case。
    例: "outputDir" → "output_dir", "baseUrl" → "base_url"
    """
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """
    将 snake_case 字符串转换为 camelCase。
    例: "output_dir" → "outputDir", "base_url" → "baseUrl"
    """
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
