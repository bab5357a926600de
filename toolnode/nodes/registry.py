"""
节点注册表模块 (nodes/registry.py)

模块职责：
    管理宿主可发现的所有节点描述（Node），每种工具类型在进程内只注册一份。
    提供按名称查找、按能力标签（base_classes）过滤、导出元数据和初始化适配器的能力。

在架构中的位置：
    宿主启动时通过 create_default_registry(config) 注册所有内置节点：
    1. describe_all() 导出元数据，用于渲染配置界面
    2. find("Tool") 等按能力标签发现节点
    3. initialize(name, config, ...) 得到绑定好配置与凭证的 Tool，再注册到会话的 ToolRegistry

类比 Java: 类似于 ServiceLoader + 工厂方法，节点描述是"类型"，Tool 是"实例"。
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from toolnode.config.schema import Config
from toolnode.credentials import CredentialResolver
from toolnode.errors import ConfigurationError
from toolnode.nodes.austlii import AustLiiSearchNode
from toolnode.nodes.azure_storage import AzureBlobUploadNode, AzureFileShareUploadNode
from toolnode.nodes.base import Node, NodeDescriptor
from toolnode.nodes.openai_tts import OpenAITextToSpeechNode
from toolnode.nodes.write_file import WriteFileNode
from toolnode.tools.base import Tool


class NodeRegistry:
    """
    节点描述注册表。

    内部使用 dict[str, Node] 存储，以节点名称（descriptor.name）为键。
    """

    def __init__(self):
        self._nodes: dict[str, Node] = {}

    def register(self, node: Node) -> None:
        """注册一个节点；名称必须唯一，重复注册会抛出 ValueError。"""
        name = node.describe().name
        if name in self._nodes:
            raise ValueError(f"Node '{name}' is already registered")
        self._nodes[name] = node

    def get(self, name: str) -> Node | None:
        return self._nodes.get(name)

    def has(self, name: str) -> bool:
        return name in self._nodes

    def find(self, base_class: str) -> list[Node]:
        """按能力标签发现节点，例如 find("Tool") 返回所有工具节点。"""
        return [n for n in self._nodes.values() if base_class in n.describe().base_classes]

    def describe_all(self) -> list[NodeDescriptor]:
        return [n.describe() for n in self._nodes.values()]

    async def initialize(
        self,
        name: str,
        config: Mapping[str, Any] | None = None,
        credential_ref: str | None = None,
        resolver: CredentialResolver | None = None,
    ) -> Tool:
        """
        按名称初始化一个节点，返回适配器。

        异常:
            ConfigurationError: 节点不存在，或配置/凭证校验失败
        """
        node = self._nodes.get(name)
        if node is None:
            raise ConfigurationError(f"Node '{name}' not found")
        try:
            return await node.initialize(config, credential_ref, resolver)
        except ConfigurationError as e:
            logger.warning(f"Node {name} failed to initialize: {e}")
            raise

    @property
    def node_names(self) -> list[str]:
        return list(self._nodes.keys())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: str) -> bool:
        return name in self._nodes


def create_default_registry(config: Config | None = None) -> NodeRegistry:
    """
    创建注册了全部内置节点的注册表。

    参数:
        config: 根配置；各节点只拿到自己那一段配置，不读取任何全局状态
    """
    config = config or Config()
    registry = NodeRegistry()
    registry.register(AustLiiSearchNode(config.search))
    registry.register(AzureBlobUploadNode(config.storage))
    registry.register(AzureFileShareUploadNode(config.storage))
    registry.register(OpenAITextToSpeechNode(config.speech))
    registry.register(WriteFileNode(config.files))
    return registry
