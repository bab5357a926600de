"""
节点描述基类模块 (nodes/base.py)

模块职责：
    定义宿主（Execution Host）看到的节点静态元数据和初始化入口：
      - ConfigField / FieldOption: 节点声明的配置输入（类型为封闭集合 string/password/options/boolean）
      - CredentialSpec: 节点需要的凭证类型
      - NodeDescriptor: 节点身份、分类、图标、能力标签、配置输入等不可变元数据
      - Node: 抽象基类，describe() 返回元数据，initialize() 产出绑定好配置和凭证的 Tool

在架构中的位置：
    宿主读取 NodeDescriptor 渲染配置界面 → 收集配置并解析凭证 →
    调用 Node.initialize() 得到 Tool → Agent 循环调用 Tool.invoke()。

初始化约定：
    - 所有必填配置项（非 optional 且无默认值）必须提供且类型正确，否则抛出 ConfigurationError，
      绝不构造出半成品的适配器
    - 只有声明了 credential 的节点才会访问凭证解析器，解析失败也是 ConfigurationError
    - 初始化阶段只做本地准备，网络/云端调用全部推迟到 invoke 时
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from toolnode.credentials import CredentialResolver
from toolnode.errors import ConfigurationError, CredentialResolutionError
from toolnode.tools.base import Tool
from toolnode.utils.helpers import get_base_classes

# 配置输入类型的封闭集合
FieldType = Literal["string", "password", "options", "boolean"]

_BOOL_STRINGS = {"true": True, "false": False}


class _Frozen(BaseModel):
    # 元数据一经构造不可修改；导出给宿主时使用 camelCase 键名
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FieldOption(_Frozen):
    """options 类型配置项的一个可选值。"""
    label: str  # 显示名
    name: str   # 实际取值


class ConfigField(_Frozen):
    """
    节点声明的一个配置输入。

    属性:
        name: 配置项名称（宿主传入 config 时使用的键）
        label: 显示名
        type: string / password（密钥，宿主应隐藏显示）/ options（枚举）/ boolean
        optional: 是否可选
        default: 默认值
        placeholder: 输入框占位提示
        options: options 类型的可选值列表（有序）
    """
    name: str
    label: str
    type: FieldType
    optional: bool = False
    default: Any = None
    placeholder: str | None = None
    options: tuple[FieldOption, ...] = ()

    @model_validator(mode="after")
    def _check_options(self) -> "ConfigField":
        if self.type == "options":
            if not self.options:
                raise ValueError(f"options field '{self.name}' must declare at least one option")
            if self.default is not None and self.default not in self.allowed_values:
                raise ValueError(f"default of '{self.name}' must be one of {self.allowed_values}")
        return self

    @property
    def required(self) -> bool:
        """非 optional 且没有默认值的配置项，宿主必须在初始化前提供。"""
        return not self.optional and self.default is None

    @property
    def allowed_values(self) -> list[str]:
        return [o.name for o in self.options]

    def coerce(self, value: Any, node: str) -> Any:
        """
        校验并规范化一个配置值。

        异常:
            ConfigurationError: 值的类型或取值不符合声明
        """
        if self.type in ("string", "password"):
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"Input '{self.name}' of node '{node}' should be string", field=self.name)
            return value
        if self.type == "options":
            if value not in self.allowed_values:
                raise ConfigurationError(
                    f"Input '{self.name}' of node '{node}' must be one of {self.allowed_values}",
                    field=self.name)
            return value
        # boolean：宿主界面可能以字符串形式提交
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in _BOOL_STRINGS:
            return _BOOL_STRINGS[value.lower()]
        raise ConfigurationError(f"Input '{self.name}' of node '{node}' should be boolean", field=self.name)


class CredentialSpec(_Frozen):
    """节点声明的凭证需求。credential_names 为可接受的凭证类型（如 "openAIApi"）。"""
    label: str = "Connect Credential"
    name: str = "credential"
    credential_names: tuple[str, ...] = ()


class NodeDescriptor(_Frozen):
    """
    节点的静态元数据，每种工具类型在进程内只有一份。

    base_classes 是能力标签（如 "Tool"、"SearchTool"），宿主用它做发现与过滤。
    """
    name: str
    label: str
    version: int = 1
    type: str
    category: str = "Tools"
    icon: str = ""
    description: str = ""
    base_classes: tuple[str, ...] = ()
    inputs: tuple[ConfigField, ...] = ()
    credential: CredentialSpec | None = None

    def get_input(self, name: str) -> ConfigField | None:
        return next((f for f in self.inputs if f.name == name), None)

    def resolve_inputs(self, config: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        按声明的配置输入解析宿主提供的配置。

        处理规则：
        1. 缺失或空字符串的项使用默认值
        2. 没有默认值的必填项缺失时抛出 ConfigurationError
        3. 提供了值的项按声明类型校验/规范化
        4. 未声明的键原样透传

        返回:
            dict[str, Any]: 解析后的配置（可选且未提供的项为 None）
        """
        config = dict(config or {})
        resolved = dict(config)
        for field in self.inputs:
            value = config.get(field.name)
            if value is None or value == "":
                if field.default is not None:
                    resolved[field.name] = field.default
                elif field.optional:
                    resolved[field.name] = None
                else:
                    raise ConfigurationError(
                        f"Missing required input '{field.name}' for node '{self.name}'", field=field.name)
                continue
            resolved[field.name] = field.coerce(value, self.name)
        return resolved

    def to_dict(self) -> dict[str, Any]:
        """导出给宿主的元数据（camelCase 键名）。"""
        return self.model_dump(by_alias=True, mode="json")


def build_base_classes(node_type: str, tool_class: type[Tool]) -> tuple[str, ...]:
    """生成能力标签：[节点类型, "Tool", 适配器类及其父类名]，去重并保持顺序。"""
    return tuple(dict.fromkeys([node_type, "Tool", *get_base_classes(tool_class)]))


class Node(ABC):
    """
    节点抽象基类。

    子类在 __init__ 中构造 self.descriptor，并实现 create_tool()。
    节点对象本身无状态，可在多个会话之间共享；
    create_tool() 产出的 Tool 则属于单个会话。
    """

    descriptor: NodeDescriptor

    def describe(self) -> NodeDescriptor:
        """返回节点元数据（纯函数，无副作用）。"""
        return self.descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    async def initialize(
        self,
        config: Mapping[str, Any] | None = None,
        credential_ref: str | None = None,
        resolver: CredentialResolver | None = None,
    ) -> Tool:
        """
        校验配置、解析凭证并构造适配器。

        参数:
            config: 宿主收集的配置输入
            credential_ref: 凭证引用（仅当节点声明了 credential 时使用）
            resolver: 凭证解析器

        返回:
            Tool: 绑定好配置与凭证的适配器

        异常:
            ConfigurationError: 配置缺失/非法，或凭证无法解析
        """
        descriptor = self.descriptor
        inputs = descriptor.resolve_inputs(config)

        credentials: dict[str, Any] = {}
        if descriptor.credential is not None and credential_ref:
            if resolver is None:
                raise CredentialResolutionError(
                    f"Node '{descriptor.name}' requires a credential resolver to resolve '{credential_ref}'")
            try:
                credentials = await resolver.resolve(credential_ref)
            except CredentialResolutionError:
                raise
            except Exception as e:
                raise CredentialResolutionError(
                    f"Failed to resolve credential '{credential_ref}' for node '{descriptor.name}': {e}") from e

        tool = self.create_tool(inputs, credentials)
        logger.info(f"Node {descriptor.name} initialized as tool {tool.name}")
        return tool

    @abstractmethod
    def create_tool(self, inputs: dict[str, Any], credentials: dict[str, Any]) -> Tool:
        """
        用解析好的配置和凭证构造适配器。

        只允许做本地准备工作（如确认本地目录），缺少必要参数时抛出 ConfigurationError。
        """
        pass
