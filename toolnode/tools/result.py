"""
工具调用结果模块 (tools/result.py)

模块职责：
    定义所有适配器统一的返回类型 ToolResult（成功文本 或 失败信息）。
    适配器内部不管是 HTTP 非 200、云存储 SDK 抛异常还是参数校验失败，
    最终都会在 Tool.invoke() 边界被归一化为 ToolResult。

    由宿主（Execution Host）在边界决定如何呈现失败：
      - to_text(): 转换为 "Error: ..." 文本，直接回传给 LLM 继续推理
      - unwrap(): 失败时抛出 ToolExecutionError，交给宿主的异常处理流程

类比 Java: 类似于 Vavr 的 Either<FailureInfo, String> 或 Rust 的 Result<String, E>。
"""

from dataclasses import dataclass

from toolnode.errors import ToolExecutionError, ToolNodeError


@dataclass(frozen=True)
class FailureInfo:
    """
    失败信息。

    属性:
        kind: 错误分类（configuration / validation / precondition / backend）
        tool: 出错的工具名称
        message: 人类可读的错误描述（包含操作名和根因）
    """

    kind: str
    tool: str
    message: str


@dataclass(frozen=True)
class ToolResult:
    """单次工具调用的结果：ok=True 时 text 有效，否则 error 有效。"""

    ok: bool
    text: str = ""
    error: FailureInfo | None = None

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, tool: str, exc: ToolNodeError) -> "ToolResult":
        return cls(ok=False, error=FailureInfo(kind=exc.kind, tool=tool, message=str(exc)))

    def to_text(self) -> str:
        """转换为回传给 LLM 的文本（失败时带 "Error: " 前缀）。"""
        if self.ok:
            return self.text
        return f"Error: {self.error.message}"

    def unwrap(self) -> str:
        """成功时返回文本，失败时抛出 ToolExecutionError。"""
        if self.ok:
            return self.text
        raise ToolExecutionError(self.error.message, self.error.kind, self.error.tool)
