"""
工具会话模块 (session.py)

模块职责：
    为宿主（Execution Host）提供单个工具节点的生命周期管理，实现如下状态机：

        UNCONFIGURED → INITIALIZING → READY ⇄ INVOKING
                            ↓
                          FAILED（终态）

    - 初始化失败进入 FAILED，之后再调用 initialize()/invoke() 都会抛出 ConfigurationError
    - 单次调用失败（返回失败的 ToolResult）后回到 READY，适配器可以继续使用
    - 允许并发调用：只要有调用在进行中，状态就是 INVOKING

    会话持有的适配器可能绑定了会话级密钥，会话结束后应随之丢弃，不要跨会话共享。

类比 Java: 类似于一个带状态机的 Bean 生命周期（Spring 的 SmartLifecycle）。
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from loguru import logger

from toolnode.credentials import CredentialResolver
from toolnode.errors import ConfigurationError
from toolnode.nodes.base import Node
from toolnode.tools.base import Tool
from toolnode.tools.result import ToolResult


class ToolState(str, Enum):
    """工具生命周期状态。"""
    UNCONFIGURED = "unconfigured"
    INITIALIZING = "initializing"
    READY = "ready"
    INVOKING = "invoking"
    FAILED = "failed"


class ToolSession:
    """
    单个节点在一个工作流会话中的生命周期。

    使用方式：
        session = ToolSession(WriteFileNode())
        await session.initialize({"basePath": "/tmp/out"})
        result = await session.invoke({"file_path": "a.txt", "text": "hello"})
    """

    def __init__(self, node: Node, resolver: CredentialResolver | None = None):
        self.node = node
        self.resolver = resolver
        self.state = ToolState.UNCONFIGURED
        self.tool: Tool | None = None
        self.error: ConfigurationError | None = None  # 初始化失败的原因
        self._in_flight = 0  # 正在进行中的调用数

    async def initialize(self, config: Mapping[str, Any] | None = None, credential_ref: str | None = None) -> Tool:
        """
        初始化节点，成功后进入 READY。

        异常:
            ConfigurationError: 配置/凭证校验失败（会话进入 FAILED），或会话状态不允许初始化
        """
        if self.state is ToolState.FAILED:
            raise ConfigurationError(f"Tool session for '{self.node.name}' has failed: {self.error}")
        if self.state is not ToolState.UNCONFIGURED:
            raise ConfigurationError(f"Tool session for '{self.node.name}' is already {self.state.value}")

        self.state = ToolState.INITIALIZING
        try:
            self.tool = await self.node.initialize(config, credential_ref, self.resolver)
        except ConfigurationError as e:
            self.state = ToolState.FAILED
            self.error = e
            logger.error(f"Tool session for {self.node.name} failed to initialize: {e}")
            raise
        except Exception as e:
            # 初始化阶段的意外异常同样视为配置错误，会话进入终态
            self.state = ToolState.FAILED
            self.error = ConfigurationError(f"Failed to initialize node '{self.node.name}': {e}")
            logger.error(f"Tool session for {self.node.name} failed to initialize: {e}")
            raise self.error from e

        self.state = ToolState.READY
        return self.tool

    async def invoke(self, params: dict[str, Any] | None = None) -> ToolResult:
        """
        调用适配器。调用结束（无论成功失败）后回到 READY。

        异常:
            ConfigurationError: 会话尚未初始化或已处于 FAILED
        """
        if self.state in (ToolState.UNCONFIGURED, ToolState.INITIALIZING, ToolState.FAILED) or self.tool is None:
            raise ConfigurationError(
                f"Tool session for '{self.node.name}' is not ready (state: {self.state.value})")

        self._in_flight += 1
        self.state = ToolState.INVOKING
        try:
            return await self.tool.invoke(params)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.state = ToolState.READY

    @property
    def ready(self) -> bool:
        return self.state in (ToolState.READY, ToolState.INVOKING)
