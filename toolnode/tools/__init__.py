"""
工具适配器子包 (tools)

模块职责：
    定义工具适配器（Tool Adapter）的统一运行时契约：
      - Tool（基类）：名称、描述、参数 schema、execute()，以及统一的 invoke() 调用入口
      - ToolResult / FailureInfo：所有适配器统一的结果类型
      - ToolRegistry（注册表）：管理一个会话内已初始化的适配器，提供按名称查找和执行的能力

具体的适配器（检索、上传、语音、文件写入）与其节点描述放在 toolnode.nodes 子包中。
"""

from toolnode.tools.base import Tool
from toolnode.tools.registry import ToolRegistry
from toolnode.tools.result import FailureInfo, ToolResult

__all__ = ["Tool", "ToolRegistry", "ToolResult", "FailureInfo"]
