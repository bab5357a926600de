"""
Azure 存储上传工具模块 (nodes/azure_storage.py)

模块职责：
    把 Agent 生成的文本内容作为文件上传到 Azure 存储，提供两种后端：
      - AzureBlobUploadNode / AzureBlobUploadTool: Blob 存储（扁平的容器 + Blob）
      - AzureFileShareUploadNode / AzureFileShareUploadTool: 文件共享（共享 + 多级目录 + 文件）

上传流程（两种后端一致）：
    1. 用账户名和账户密钥拼出连接串，创建异步服务客户端
    2. 确保容器/共享存在（不存在则创建）；文件共享还会逐级创建 folderPath 中的目录
    3. 以 UTF-8 编码后的字节写入文件（覆盖同名文件）
    4. 返回 "File <name> uploaded successfully at <url>"

    "不存在则创建"对重复调用和并发调用都是安全的：ResourceExistsError 视为已存在。
    任何创建或上传失败都被包装为一个 BackendError，消息中包含后端名和根因。

技术选型：
    - azure-storage-blob / azure-storage-file-share 的 aio 客户端（异步，与其他工具保持一致）
    - 服务客户端工厂可注入，测试时替换为内存中的假实现
"""

from abc import abstractmethod
from collections.abc import Callable
from typing import Any

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob.aio import BlobServiceClient
from azure.storage.fileshare.aio import ShareServiceClient
from loguru import logger

from toolnode.config.schema import StorageConfig
from toolnode.errors import BackendError
from toolnode.nodes.base import ConfigField, Node, NodeDescriptor, build_base_classes
from toolnode.tools.base import Tool

# 服务客户端工厂：输入连接串，返回支持 async with 的服务客户端
ServiceFactory = Callable[[str], Any]

UPLOAD_PARAMETERS = {
    "type": "object",
    "properties": {
        "fileName": {"type": "string", "description": "Name of file to upload", "minLength": 1},
        "fileContent": {"type": "string", "description": "Content of file to upload"}
    },
    "required": ["fileName", "fileContent"]
}


def build_connection_string(account_name: str, account_key: str, endpoint_suffix: str = "core.windows.net") -> str:
    """拼接 Azure 存储连接串。"""
    return (
        f"DefaultEndpointsProtocol=https;AccountName={account_name};"
        f"AccountKey={account_key};EndpointSuffix={endpoint_suffix}"
    )


def split_folder_path(folder_path: str | None) -> list[str]:
    """把 "a/b/c"、"/a//b/" 之类的目录路径拆成非空的路径段。"""
    return [part for part in (folder_path or "").replace("\\", "/").split("/") if part]


class AzureUploadTool(Tool):
    """
    Azure 上传适配器的公共基类。

    子类实现 _upload()，返回上传后文件的完整 URL；
    基类负责连接串、字节编码和错误包装。
    """

    parameters = UPLOAD_PARAMETERS

    def __init__(
        self,
        account_name: str,
        account_key: str,
        endpoint_suffix: str,
        service_factory: ServiceFactory,
    ):
        self.account_name = account_name
        self._connection_string = build_connection_string(account_name, account_key, endpoint_suffix)
        self._service_factory = service_factory

    async def execute(self, fileName: str, fileContent: str, **kwargs: Any) -> str:
        data = fileContent.encode("utf-8")
        logger.debug(f"{self.operation}: {fileName} ({len(data)} bytes) to account {self.account_name}")
        try:
            async with self._service_factory(self._connection_string) as service:
                url = await self._upload(service, fileName, data)
        except (AzureError, ValueError) as e:
            raise BackendError(self.operation, str(e) or type(e).__name__) from e
        logger.info(f"{self.operation}: {fileName} uploaded to {url}")
        return f"File {fileName} uploaded successfully at {url}"

    @abstractmethod
    async def _upload(self, service: Any, file_name: str, data: bytes) -> str:
        """在已打开的服务客户端上完成上传，返回文件 URL。"""


class AzureBlobUploadTool(AzureUploadTool):
    """上传到 Azure Blob 存储。"""

    name = "azure_blob_upload"
    description = "Upload a file to Azure Blob Storage"
    operation = "Azure Blob Upload"

    def __init__(
        self,
        account_name: str,
        account_key: str,
        container_name: str,
        endpoint_suffix: str = "core.windows.net",
        service_factory: ServiceFactory | None = None,
    ):
        super().__init__(account_name, account_key, endpoint_suffix,
                         service_factory or BlobServiceClient.from_connection_string)
        self.container_name = container_name

    async def _upload(self, service: Any, file_name: str, data: bytes) -> str:
        container = service.get_container_client(self.container_name)
        try:
            await container.create_container()
            logger.info(f"Created blob container {self.container_name}")
        except ResourceExistsError:
            pass

        blob = container.get_blob_client(file_name)
        await blob.upload_blob(data, overwrite=True)
        return blob.url


class AzureFileShareUploadTool(AzureUploadTool):
    """上传到 Azure 文件共享，可选上传到共享内的子目录。"""

    name = "azure_file_share_upload"
    description = "Upload a file to Azure File Share"
    operation = "Azure File Share Upload"

    def __init__(
        self,
        account_name: str,
        account_key: str,
        share_name: str,
        folder_path: str | None = None,
        endpoint_suffix: str = "core.windows.net",
        service_factory: ServiceFactory | None = None,
    ):
        super().__init__(account_name, account_key, endpoint_suffix,
                         service_factory or ShareServiceClient.from_connection_string)
        self.share_name = share_name
        self.folder_segments = split_folder_path(folder_path)

    async def _upload(self, service: Any, file_name: str, data: bytes) -> str:
        share = service.get_share_client(self.share_name)
        try:
            await share.create_share()
            logger.info(f"Created file share {self.share_name}")
        except ResourceExistsError:
            pass

        # 文件共享要求父目录先存在，因此逐级创建
        for i in range(len(self.folder_segments)):
            try:
                await share.get_directory_client("/".join(self.folder_segments[: i + 1])).create_directory()
            except ResourceExistsError:
                pass

        directory = share.get_directory_client("/".join(self.folder_segments))
        file_client = directory.get_file_client(file_name)
        try:
            await file_client.upload_file(data)
        except AzureError:
            await self._discard(file_client, file_name)
            raise
        return file_client.url

    async def _discard(self, file_client: Any, file_name: str) -> None:
        # upload_file 先创建再分段写入，失败时删除可能残留的半成品文件
        try:
            await file_client.delete_file()
        except AzureError as e:
            logger.warning(f"Failed to remove partial upload {file_name}: {e}")


class _AzureUploadNode(Node):
    """两个 Azure 上传节点共用的构造参数。"""

    def __init__(self, config: StorageConfig | None = None, service_factory: ServiceFactory | None = None):
        self.config = config or StorageConfig()
        self._service_factory = service_factory


_ACCOUNT_INPUTS = (
    ConfigField(label="Storage Account Name", name="storageAccountName", type="string",
                placeholder="mystorageaccount"),
    ConfigField(label="Storage Account Key", name="storageAccountKey", type="password"),
)


class AzureBlobUploadNode(_AzureUploadNode):
    """Azure Blob 上传节点描述。"""

    def __init__(self, config: StorageConfig | None = None, service_factory: ServiceFactory | None = None):
        super().__init__(config, service_factory)
        self.descriptor = NodeDescriptor(
            label="Azure Blob Upload",
            name="azureBlobUpload",
            version=1,
            type="AzureBlobUpload",
            icon="azureblob.svg",
            category="Tools",
            description="Upload file to Azure Blob Storage",
            base_classes=build_base_classes("AzureBlobUpload", AzureBlobUploadTool),
            inputs=(
                *_ACCOUNT_INPUTS,
                ConfigField(label="Blob Container Name", name="containerName", type="string",
                            placeholder="mycontainer"),
            ),
        )

    def create_tool(self, inputs: dict[str, Any], credentials: dict[str, Any]) -> Tool:
        return AzureBlobUploadTool(
            account_name=inputs["storageAccountName"],
            account_key=inputs["storageAccountKey"],
            container_name=inputs["containerName"],
            endpoint_suffix=self.config.endpoint_suffix,
            service_factory=self._service_factory,
        )


class AzureFileShareUploadNode(_AzureUploadNode):
    """Azure 文件共享上传节点描述。"""

    def __init__(self, config: StorageConfig | None = None, service_factory: ServiceFactory | None = None):
        super().__init__(config, service_factory)
        self.descriptor = NodeDescriptor(
            label="Azure File Share Upload",
            name="azureFileShareUpload",
            version=1,
            type="AzureFileShareUpload",
            icon="azurefileshare.svg",
            category="Tools",
            description="Upload file to Azure File Share",
            base_classes=build_base_classes("AzureFileShareUpload", AzureFileShareUploadTool),
            inputs=(
                *_ACCOUNT_INPUTS,
                ConfigField(label="File Share Name", name="fileShareName", type="string",
                            placeholder="myfileshare"),
                ConfigField(label="Folder Path", name="folderPath", type="string", optional=True,
                            placeholder="documents/subfolder"),
            ),
        )

    def create_tool(self, inputs: dict[str, Any], credentials: dict[str, Any]) -> Tool:
        return AzureFileShareUploadTool(
            account_name=inputs["storageAccountName"],
            account_key=inputs["storageAccountKey"],
            share_name=inputs["fileShareName"],
            folder_path=inputs.get("folderPath"),
            endpoint_suffix=self.config.endpoint_suffix,
            service_factory=self._service_factory,
        )
