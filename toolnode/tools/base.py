"""
工具适配器基类模块 (tools/base.py)

模块职责：
    定义所有工具适配器（Tool Adapter）的抽象基类 Tool。
    每个适配器必须实现4个核心接口：name、description、parameters、execute。
    基类还提供了参数校验（validate_params）、统一调用入口（invoke）
    和 OpenAI Function Calling 格式转换（to_schema）的通用能力。

在架构中的位置：
    Tool 是由节点描述（Node）的 initialize() 产出的运行时实例，
    已绑定解析好的配置与凭证。宿主或 Agent 循环通过 invoke() 调用它。

统一调用约定（invoke）：
    1. check_preconditions(): 适配器特有的前置条件（如文本不能为空）
    2. validate_params(): 按 parameters（JSON Schema）校验参数，失败则不做任何外部调用
    3. execute(): 只接收 parameters 中声明过的参数，执行恰好一次外部操作（不做内部重试，重试是宿主的职责）
    4. 所有异常在此边界被归一化为 ToolResult，原始的传输层异常绝不外泄

设计模式对比（Java 视角）：
    相当于 Java 中的 interface + 模板方法模式：
    - parameters 是唯一的参数定义，校验器和对 LLM 暴露的函数签名都从它派生
    - invoke() 是模板方法，execute() 是子类实现的核心业务方法
"""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from toolnode.errors import BackendError, ToolNodeError, ToolValidationError
from toolnode.tools.result import ToolResult


class Tool(ABC):
    """
    工具适配器的抽象基类。

    所有适配器必须实现以下抽象属性和方法：
      - name: 工具名称，LLM 在 function call 中使用此名称来调用工具
      - description: 工具功能描述，帮助 LLM 理解何时该调用此工具
      - parameters: JSON Schema 格式的参数定义
      - execute(): 实际执行外部操作的异步方法，失败时抛出 ToolNodeError 子类

    适配器之间不共享可变状态，同一实例可被并发调用；
    一次失败的调用不会让实例失效，下一次调用照常进行。
    """

    # JSON Schema 类型 -> Python 类型的映射表，用于参数校验
    _TYPE_MAP = {
        "string": str,
        "integer": int,
        "number": (int, float),  # number 类型同时接受整数和浮点数
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    # 出现在 BackendError 消息中的操作名，子类可覆盖为更友好的名称
    operation: str | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """工具名称，用于 LLM function call 中的函数名标识。"""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """工具功能描述，LLM 据此判断何时调用该工具。"""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """工具参数的 JSON Schema 定义，描述工具接受哪些输入参数。"""
        pass

    @abstractmethod
    async def execute(self, **kwargs: Any) -> str:
        """
        执行工具的核心逻辑（异步方法）。

        参数:
            **kwargs: 工具特定的参数，已经过校验

        返回:
            str: 工具执行结果的文本表示，会回传给 LLM 作为后续推理的上下文

        异常:
            ToolNodeError: 外部操作失败时抛出 BackendError，前置条件不满足时抛出 PreconditionError
        """
        pass

    def check_preconditions(self, params: dict[str, Any]) -> None:
        """适配器特有的前置条件检查，在 Schema 校验之前执行。默认无检查。"""

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """
        根据 JSON Schema 校验工具参数。

        参数:
            params: LLM 传入的参数字典

        返回:
            list[str]: 错误信息列表，空列表表示校验通过。
        """
        schema = self.parameters or {}
        if schema.get("type", "object") != "object":
            raise ValueError(f"Schema must be object type, got {schema.get('type')!r}")
        return self._validate(params, {**schema, "type": "object"}, "")

    def _validate(self, val: Any, schema: dict[str, Any], path: str) -> list[str]:
        """
        递归校验单个值是否符合 JSON Schema。

        参数:
            val: 待校验的值
            schema: 该值对应的 JSON Schema 片段
            path: 当前字段路径（用于错误信息定位，如 "address.city"）

        返回:
            list[str]: 校验错误列表
        """
        t, label = schema.get("type"), path or "parameter"
        if t in self._TYPE_MAP and not isinstance(val, self._TYPE_MAP[t]):
            return [f"{label} should be {t}"]

        errors = []
        if "enum" in schema and val not in schema["enum"]:
            errors.append(f"{label} must be one of {schema['enum']}")
        if t in ("integer", "number"):
            if "minimum" in schema and val < schema["minimum"]:
                errors.append(f"{label} must be >= {schema['minimum']}")
            if "maximum" in schema and val > schema["maximum"]:
                errors.append(f"{label} must be <= {schema['maximum']}")
        if t == "string":
            if "minLength" in schema and len(val) < schema["minLength"]:
                errors.append(f"{label} must be at least {schema['minLength']} chars")
            if "maxLength" in schema and len(val) > schema["maxLength"]:
                errors.append(f"{label} must be at most {schema['maxLength']} chars")
        # 对象类型：先检查必填字段，再递归校验每个已声明的属性
        if t == "object":
            props = schema.get("properties", {})
            for k in schema.get("required", []):
                if k not in val:
                    errors.append(f"missing required {path + '.' + k if path else k}")
            for k, v in val.items():
                if k in props:
                    errors.extend(self._validate(v, props[k], path + '.' + k if path else k))
        if t == "array" and "items" in schema:
            for i, item in enumerate(val):
                errors.extend(self._validate(item, schema["items"], f"{path}[{i}]" if path else f"[{i}]"))
        return errors

    async def invoke(self, params: dict[str, Any] | None = None) -> ToolResult:
        """
        统一调用入口：前置检查 → 参数校验 → 执行 → 结果归一化。

        参数:
            params: 调用参数（由 LLM 的 function arguments 或宿主提供）

        返回:
            ToolResult: 成功文本或失败信息，本方法不会抛出业务异常
        """
        params = {} if params is None else params
        try:
            if not isinstance(params, dict):
                raise ToolValidationError(self.name, ["parameters should be object"])
            self.check_preconditions(params)
            errors = self.validate_params(params)
            if errors:
                raise ToolValidationError(self.name, errors)
            text = await self.execute(**self._declared_args(params))
        except ToolNodeError as e:
            logger.warning(f"Tool {self.name} failed ({e.kind}): {e}")
            return ToolResult.failure(self.name, e)
        except Exception as e:
            # execute() 漏掉的异常统一包装为 BackendError，不让原始异常类型越过适配器边界
            logger.error(f"Tool {self.name} raised unexpected {type(e).__name__}: {e}")
            return ToolResult.failure(self.name, BackendError(self.operation or self.name, str(e)))
        return ToolResult.success(text)

    def _declared_args(self, params: dict[str, Any]) -> dict[str, Any]:
        """只把 parameters 中声明过的参数传给 execute()，未声明的键（如 "self"）被忽略。"""
        props = (self.parameters or {}).get("properties", {})
        ignored = [k for k in params if k not in props]
        if ignored:
            logger.debug(f"Tool {self.name} ignoring undeclared arguments: {ignored}")
        return {k: v for k, v in params.items() if k in props}

    def to_schema(self) -> dict[str, Any]:
        """
        将工具转换为 OpenAI Function Calling 格式的 JSON Schema。

        返回值示例:
            {
                "type": "function",
                "function": {
                    "name": "write_file",
                    "description": "Write file to disk",
                    "parameters": { ... JSON Schema ... }
                }
            }
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            }
        }
