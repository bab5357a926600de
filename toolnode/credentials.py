"""
凭证解析模块 (credentials.py)

模块职责：
    定义凭证解析器（Credential Resolver）的接口：给定一个不透明的凭证引用，
    返回适配器所需的具体密钥参数（如 {"openAIApiKey": "sk-..."}）。

    真正的凭证存储属于宿主（Execution Host）的职责，本模块只规定接口边界，
    并提供一个基于内存映射的实现 MappingCredentialResolver，
    可直接用 Config.credentials 构造，也便于测试时注入。

在架构中的位置：
    Node.initialize() 仅在节点声明了 credential 时才会调用解析器；
    解析失败属于初始化错误（ConfigurationError），而不是调用期错误。

类比 Java: 类似于 Spring Cloud Vault 的 SecretResolver 接口。
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from loguru import logger

from toolnode.errors import CredentialResolutionError


class CredentialResolver(ABC):
    """凭证解析器抽象基类。"""

    @abstractmethod
    async def resolve(self, credential_ref: str) -> dict[str, Any]:
        """
        解析凭证引用。

        参数:
            credential_ref: 不透明的凭证引用（如凭证 ID）

        返回:
            dict[str, Any]: 密钥参数字典

        异常:
            CredentialResolutionError: 引用不存在或无法解析
        """
        pass


class MappingCredentialResolver(CredentialResolver):
    """
    基于内存映射的凭证解析器。

    使用方式：
        resolver = MappingCredentialResolver({"cred-1": {"openAIApiKey": "sk-xxx"}})
        data = await resolver.resolve("cred-1")
    """

    def __init__(self, credentials: Mapping[str, Mapping[str, Any]] | None = None):
        # 复制一份，避免调用方后续修改影响已创建的解析器
        self._credentials = {ref: dict(params) for ref, params in (credentials or {}).items()}

    async def resolve(self, credential_ref: str) -> dict[str, Any]:
        params = self._credentials.get(credential_ref)
        if params is None:
            logger.warning(f"Credential not found: {credential_ref}")
            raise CredentialResolutionError(f"Credential '{credential_ref}' not found")
        return dict(params)


def get_credential_param(
    name: str,
    credentials: Mapping[str, Any] | None,
    inputs: Mapping[str, Any] | None = None,
) -> Any:
    """
    获取某个密钥参数：优先从已解析的凭证数据中取，其次从节点配置输入中取。

    参数:
        name: 参数名（如 "openAIApiKey"）
        credentials: 凭证解析器返回的数据
        inputs: 节点的配置输入

    返回:
        参数值，两处都没有时返回 None
    """
    if credentials and credentials.get(name):
        return credentials[name]
    if inputs and inputs.get(name):
        return inputs[name]
    return None
