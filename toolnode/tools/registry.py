"""
工具注册表模块 (tools/registry.py)

模块职责：
    管理一个 Agent 会话中已初始化的工具适配器（Tool）。
    提供工具的注册、注销、查找、执行等核心能力，
    是 Agent 的 function-calling 循环与具体适配器之间的中间层。

使用方式：
    1. 宿主通过 NodeRegistry.initialize() 得到 Tool 实例后 register() 到这里
    2. 构建 LLM 请求时，调用 get_definitions() 获取所有工具的 JSON Schema
    3. LLM 返回 tool_calls 时，调用 execute(name, params) 得到回传给 LLM 的文本

注意：注册表持有的适配器可能绑定了会话级密钥，不要在无关会话之间共享同一个注册表。
"""

from typing import Any

from toolnode.tools.base import Tool
from toolnode.tools.result import FailureInfo, ToolResult


class ToolRegistry:
    """
    工具适配器注册表。

    内部使用 dict[str, Tool] 存储，以工具名称为键。
    类比 Java: 类似于一个轻量级的 ServiceRegistry<Tool>。
    """

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """注册一个工具；同名工具会被覆盖（后注册的优先）。"""
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """按名称注销一个工具，不存在则静默忽略。"""
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def get_definitions(self) -> list[dict[str, Any]]:
        """获取所有已注册工具的 OpenAI Function Calling 格式定义。"""
        return [tool.to_schema() for tool in self._tools.values()]

    async def invoke(self, name: str, params: dict[str, Any]) -> ToolResult:
        """
        按名称调用工具，返回结构化结果。

        参数:
            name: 工具名称（由 LLM 返回的 function name）
            params: 工具参数（由 LLM 返回的 function arguments）

        返回:
            ToolResult: 未找到工具时返回 kind="not_found" 的失败结果
        """
        tool = self._tools.get(name)
        if not tool:
            return ToolResult(ok=False, error=FailureInfo(kind="not_found", tool=name,
                                                          message=f"Tool '{name}' not found"))
        return await tool.invoke(params)

    async def execute(self, name: str, params: dict[str, Any]) -> str:
        """
        按名称执行工具，返回回传给 LLM 的文本。

        失败结果会被渲染为 "Error: ..." 文本而不是抛出，
        保证单个工具的错误不会导致 Agent 循环崩溃。
        """
        result = await self.invoke(name, params)
        return result.to_text()

    async def execute_or_raise(self, name: str, params: dict[str, Any]) -> str:
        """按名称执行工具，失败时抛出 ToolExecutionError（供偏好异常流程的宿主使用）。"""
        result = await self.invoke(name, params)
        return result.unwrap()

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
