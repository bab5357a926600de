"""
配置数据模型定义 (config/schema.py)
=================================
本模块使用 Pydantic 定义 toolnode 的完整配置结构。
所有配置项都有默认值，用户只需在 config.json 中覆盖需要修改的部分。

整体配置结构（树形）：
Config (根配置)
├── search       - AustLII 检索工具配置（检索地址、超时、User-Agent）
├── storage      - Azure 存储配置（Endpoint 后缀）
├── speech       - 语音合成配置（音频输出目录）
├── files        - 文件写入配置（默认根目录、是否限制在根目录内）
└── credentials  - 凭证表（凭证引用 → 密钥参数），供 MappingCredentialResolver 使用

这些配置在构造节点时被显式传入（见 create_default_registry），
节点运行时不依赖任何进程级的全局可变状态。
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchConfig(BaseModel):
    """AustLII 检索工具配置。"""
    base_url: str = "https://www.austlii.edu.au/cgi-bin/sinosrch.cgi"  # 默认检索入口
    timeout: float = 30.0  # HTTP 请求超时（秒）
    user_agent: str = "Mozilla/5.0 (compatible; toolnode/0.1)"  # 请求头中的 User-Agent


class StorageConfig(BaseModel):
    """Azure 存储配置。连接串由账户名、账户密钥和此处的 Endpoint 后缀拼接而成。"""
    endpoint_suffix: str = "core.windows.net"  # 中国区等主权云可改为 core.chinacloudapi.cn


class SpeechConfig(BaseModel):
    """语音合成配置。"""
    output_dir: str = "./outputs/audio"  # 合成音频的保存目录（按需创建）


class FilesConfig(BaseModel):
    """
    文件写入工具配置。

    restrict_to_base_path: 安全沙箱开关
    - True: 目标路径解析后必须位于根目录之内（拒绝 ../ 越界）
    - False: 不做限制（默认，与节点的原始行为一致）
    """
    base_path: str | None = None  # 默认根目录，None 表示使用当前工作目录
    restrict_to_base_path: bool = False


class Config(BaseSettings):
    """
    toolnode 根配置类。

    继承自 Pydantic 的 BaseSettings，除了支持从 JSON 文件加载外，
    还支持从环境变量读取配置：
    - 环境变量前缀: TOOLNODE_
    - 嵌套分隔符: __ (双下划线)
    - 示例: TOOLNODE_SPEECH__OUTPUT_DIR=/data/audio 可覆盖 speech.output_dir
    """
    search: SearchConfig = Field(default_factory=SearchConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    speech: SpeechConfig = Field(default_factory=SpeechConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)
    credentials: dict[str, dict[str, str]] = Field(default_factory=dict)  # 凭证引用 → 密钥参数

    model_config = SettingsConfigDict(
        env_prefix="TOOLNODE_",
        env_nested_delimiter="__"
    )
