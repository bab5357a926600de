"""
错误类型定义模块 (errors.py)

模块职责：
    定义工具节点体系中统一的错误分类。每个错误类都带有 kind 字段，
    Tool.invoke() 在适配器边界将它们转换为 ToolResult 中的 FailureInfo。

错误分类：
    - ConfigurationError: 初始化阶段的配置/凭证错误，只会在 initialize() 中抛出
    - ToolValidationError: 调用参数不符合 JSON Schema，在任何外部调用之前抛出
    - PreconditionError: 适配器特有的前置条件不满足（如语音合成的文本为空）
    - BackendError: 外部系统（HTTP / 云存储 / 语音 API / 文件系统）返回失败或抛出异常
    - ToolExecutionError: 宿主调用 ToolResult.unwrap() 时，失败结果转换成的异常

类比 Java: 类似于一个 checked exception 的继承体系，
所有异常都继承自 ToolNodeError（相当于自定义的 BaseException）。
"""


class ToolNodeError(Exception):
    """工具节点体系所有错误的基类。"""

    kind = "error"


class ConfigurationError(ToolNodeError):
    """缺少必填配置项、配置值非法或凭证无法解析。"""

    kind = "configuration"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field  # 出错的配置项名称（可选）


class CredentialResolutionError(ConfigurationError):
    """凭证引用无法解析为具体的密钥参数。"""

    kind = "credential"


class ToolValidationError(ToolNodeError):
    """调用参数未通过 Schema 校验。"""

    kind = "validation"

    def __init__(self, tool: str, errors: list[str]):
        super().__init__(f"Invalid parameters for tool '{tool}': " + "; ".join(errors))
        self.tool = tool
        self.errors = errors


class PreconditionError(ToolNodeError):
    """适配器特有的前置条件不满足。"""

    kind = "precondition"


class BackendError(ToolNodeError):
    """
    外部操作失败。

    消息格式固定为 "<operation> failed: <reason>"，
    保证宿主和 LLM 都能看出是哪个操作失败、失败原因是什么。
    """

    kind = "backend"

    def __init__(self, operation: str, reason: str):
        super().__init__(f"{operation} failed: {reason}")
        self.operation = operation
        self.reason = reason


class ToolExecutionError(ToolNodeError):
    """失败的 ToolResult 被 unwrap() 时抛出，保留原始错误分类。"""

    kind = "execution"

    def __init__(self, message: str, failure_kind: str, tool: str):
        super().__init__(message)
        self.failure_kind = failure_kind
        self.tool = tool
