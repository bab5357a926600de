"""
Azure 存储上传工具测试

使用 conftest 中的内存假实现替代 Azure SDK 的服务客户端，覆盖：
1. 容器/共享的"不存在则创建"（重复调用安全）
2. 多级目录逐级创建
3. 内容以 UTF-8 字节写入、同名覆盖
4. SDK 异常被包装为 BackendError
"""

import pytest
from azure.core.exceptions import HttpResponseError, ServiceRequestError

from toolnode.config.schema import StorageConfig
from toolnode.errors import ConfigurationError
from toolnode.nodes.azure_storage import (
    AzureBlobUploadNode,
    AzureBlobUploadTool,
    AzureFileShareUploadNode,
    AzureFileShareUploadTool,
    build_connection_string,
    split_folder_path,
)


class TestHelpers:
    """辅助函数测试"""

    def test_build_connection_string(self):
        """测试连接串格式"""
        assert build_connection_string("acct", "a2V5") == (
            "DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=a2V5;EndpointSuffix=core.windows.net"
        )

    def test_split_folder_path(self):
        """测试目录路径拆分"""
        assert split_folder_path("reports/2024/q1") == ["reports", "2024", "q1"]
        assert split_folder_path("/a//b/") == ["a", "b"]
        assert split_folder_path("a\\b") == ["a", "b"]
        assert split_folder_path(None) == []


class TestAzureBlobUploadTool:
    """Blob 上传测试"""

    @pytest.fixture
    def tool(self, blob_store):
        return AzureBlobUploadTool("acct", "a2V5", "reports", service_factory=blob_store.factory)

    @pytest.mark.asyncio
    async def test_upload(self, tool, blob_store):
        """测试上传成功并返回文件 URL"""
        result = await tool.invoke({"fileName": "summary.txt", "fileContent": "Résumé ✓"})

        assert result.ok
        assert result.text == (
            "File summary.txt uploaded successfully at https://acct.blob.core.windows.net/reports/summary.txt"
        )
        assert blob_store.containers["reports"]["summary.txt"] == "Résumé ✓".encode("utf-8")
        assert "AccountName=acct;AccountKey=a2V5" in blob_store.connection_strings[0]

    @pytest.mark.asyncio
    async def test_repeated_upload_reuses_container(self, tool, blob_store):
        """测试重复调用：容器已存在不报错，同名文件被覆盖"""
        await tool.invoke({"fileName": "a.txt", "fileContent": "v1"})
        result = await tool.invoke({"fileName": "a.txt", "fileContent": "v2"})

        assert result.ok
        assert blob_store.create_attempts == 2
        assert list(blob_store.containers) == ["reports"]
        assert blob_store.containers["reports"]["a.txt"] == b"v2"

    @pytest.mark.asyncio
    async def test_empty_content(self, tool, blob_store):
        """测试空内容也能上传"""
        result = await tool.invoke({"fileName": "empty.txt", "fileContent": ""})

        assert result.ok
        assert blob_store.containers["reports"]["empty.txt"] == b""

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self, tool, blob_store):
        """测试 SDK 异常被包装为 BackendError"""
        blob_store.upload_error = HttpResponseError(message="AuthenticationFailed")

        result = await tool.invoke({"fileName": "a.txt", "fileContent": "x"})

        assert not result.ok
        assert result.error.kind == "backend"
        assert result.error.message.startswith("Azure Blob Upload failed:")
        assert "AuthenticationFailed" in result.error.message

    @pytest.mark.asyncio
    async def test_missing_file_name(self, tool, blob_store):
        """测试缺少文件名时不访问存储"""
        result = await tool.invoke({"fileContent": "x"})

        assert result.error.kind == "validation"
        assert blob_store.connection_strings == []


class TestAzureFileShareUploadTool:
    """文件共享上传测试"""

    @pytest.mark.asyncio
    async def test_upload_to_share_root(self, share_store):
        """测试不配置 folderPath 时上传到共享根目录"""
        tool = AzureFileShareUploadTool("acct", "a2V5", "docs", service_factory=share_store.factory)

        result = await tool.invoke({"fileName": "note.txt", "fileContent": "hello"})

        assert result.text == "File note.txt uploaded successfully at https://acct.file.core.windows.net/docs/note.txt"
        assert share_store.files[("docs", "note.txt")] == b"hello"

    @pytest.mark.asyncio
    async def test_nested_folders_are_created(self, share_store):
        """测试多级目录逐级创建，重复调用安全"""
        tool = AzureFileShareUploadTool("acct", "a2V5", "docs", folder_path="reports/2024/q1",
                                        service_factory=share_store.factory)

        first = await tool.invoke({"fileName": "a.txt", "fileContent": "one"})
        second = await tool.invoke({"fileName": "b.txt", "fileContent": "two"})

        assert first.ok and second.ok
        assert share_store.shares["docs"] == {"", "reports", "reports/2024", "reports/2024/q1"}
        assert share_store.files[("docs", "reports/2024/q1/b.txt")] == b"two"
        assert second.text.endswith("https://acct.file.core.windows.net/docs/reports/2024/q1/b.txt")

    @pytest.mark.asyncio
    async def test_partial_upload_is_removed(self, share_store):
        """测试上传失败时删除残留的半成品文件"""
        share_store.upload_error = ServiceRequestError("connection reset")
        tool = AzureFileShareUploadTool("acct", "a2V5", "docs", folder_path="out",
                                        service_factory=share_store.factory)

        result = await tool.invoke({"fileName": "a.txt", "fileContent": "x"})

        assert result.error.kind == "backend"
        assert result.error.message == "Azure File Share Upload failed: connection reset"
        assert share_store.files == {}


class TestAzureUploadNodes:
    """上传节点测试"""

    @pytest.mark.asyncio
    async def test_blob_node_initialize(self, blob_store):
        """测试 Blob 节点初始化并上传"""
        node = AzureBlobUploadNode(StorageConfig(endpoint_suffix="core.chinacloudapi.cn"),
                                   service_factory=blob_store.factory)

        tool = await node.initialize({
            "storageAccountName": "acct",
            "storageAccountKey": "a2V5",
            "containerName": "reports",
        })
        result = await tool.invoke({"fileName": "a.txt", "fileContent": "x"})

        assert result.ok
        assert blob_store.connection_strings[0].endswith("EndpointSuffix=core.chinacloudapi.cn")

    @pytest.mark.asyncio
    async def test_blob_node_missing_container(self, blob_store):
        """测试缺少容器名时初始化失败，且不访问存储"""
        node = AzureBlobUploadNode(service_factory=blob_store.factory)

        with pytest.raises(ConfigurationError) as exc_info:
            await node.initialize({"storageAccountName": "acct", "storageAccountKey": "a2V5"})

        assert exc_info.value.field == "containerName"
        assert blob_store.connection_strings == []

    @pytest.mark.asyncio
    async def test_file_share_node_initialize(self, share_store):
        """测试文件共享节点的 folderPath 可选"""
        node = AzureFileShareUploadNode(service_factory=share_store.factory)

        tool = await node.initialize({
            "storageAccountName": "acct",
            "storageAccountKey": "a2V5",
            "fileShareName": "docs",
        })

        assert isinstance(tool, AzureFileShareUploadTool)
        assert tool.folder_segments == []

    def test_descriptors(self):
        """测试节点元数据：账户密钥是 password 类型"""
        blob = AzureBlobUploadNode().describe()
        share = AzureFileShareUploadNode().describe()

        assert blob.get_input("storageAccountKey").type == "password"
        assert share.get_input("folderPath").optional
        assert "Tool" in blob.base_classes and "Tool" in share.base_classes
