"""
节点子包 (nodes)

模块职责：
    定义宿主看到的节点描述契约，以及全部内置节点：
      - Node / NodeDescriptor / ConfigField（基类与元数据）
      - NodeRegistry（节点注册表）与 create_default_registry()

内置节点清单：
    - AustLiiSearchNode：AustLII 法律文档检索
    - AzureBlobUploadNode / AzureFileShareUploadNode：上传文件到 Azure 存储
    - OpenAITextToSpeechNode：OpenAI 文字转语音
    - WriteFileNode：写入本地文件

二开提示：
    新增工具只需继承 Node 和 Tool，并在 create_default_registry() 中注册。
"""

from toolnode.nodes.austlii import AustLiiSearchNode
from toolnode.nodes.azure_storage import AzureBlobUploadNode, AzureFileShareUploadNode
from toolnode.nodes.base import ConfigField, CredentialSpec, FieldOption, Node, NodeDescriptor
from toolnode.nodes.openai_tts import OpenAITextToSpeechNode
from toolnode.nodes.registry import NodeRegistry, create_default_registry
from toolnode.nodes.write_file import WriteFileNode

__all__ = [
    "Node",
    "NodeDescriptor",
    "ConfigField",
    "CredentialSpec",
    "FieldOption",
    "NodeRegistry",
    "create_default_registry",
    "AustLiiSearchNode",
    "AzureBlobUploadNode",
    "AzureFileShareUploadNode",
    "OpenAITextToSpeechNode",
    "WriteFileNode",
]
