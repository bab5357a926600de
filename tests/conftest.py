"""
测试公共夹具

提供内存中的 Azure Blob / File Share 假实现和 OpenAI 假客户端，
让上传和语音合成工具在不访问网络的情况下完成端到端测试。
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError


# ==============================================================================
# Azure Blob 假实现
# ==============================================================================


class FakeBlobStore:
    """模拟一个存储账户内的全部 Blob 容器。"""

    def __init__(self):
        self.containers: dict[str, dict[str, bytes]] = {}
        self.connection_strings: list[str] = []
        self.create_attempts = 0
        self.upload_error: Exception | None = None  # 设置后 upload_blob 抛出该异常

    def factory(self, connection_string: str) -> "FakeBlobService":
        self.connection_strings.append(connection_string)
        return FakeBlobService(self)


class FakeBlobClient:
    def __init__(self, store: FakeBlobStore, container: str, name: str):
        self._store = store
        self._container = container
        self._name = name

    @property
    def url(self) -> str:
        return f"https://acct.blob.core.windows.net/{self._container}/{self._name}"

    async def upload_blob(self, data: bytes, overwrite: bool = False):
        if self._store.upload_error:
            raise self._store.upload_error
        blobs = self._store.containers[self._container]
        if self._name in blobs and not overwrite:
            raise ResourceExistsError("BlobAlreadyExists")
        blobs[self._name] = data


class FakeContainerClient:
    def __init__(self, store: FakeBlobStore, name: str):
        self._store = store
        self._name = name

    async def create_container(self):
        self._store.create_attempts += 1
        if self._name in self._store.containers:
            raise ResourceExistsError("ContainerAlreadyExists")
        self._store.containers[self._name] = {}

    def get_blob_client(self, name: str) -> FakeBlobClient:
        return FakeBlobClient(self._store, self._name, name)


class FakeBlobService:
    def __init__(self, store: FakeBlobStore):
        self._store = store

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def get_container_client(self, name: str) -> FakeContainerClient:
        return FakeContainerClient(self._store, name)


# ==============================================================================
# Azure File Share 假实现
# ==============================================================================


class FakeShareStore:
    """模拟一个存储账户内的文件共享：共享名 → 目录集合与文件内容。"""

    def __init__(self):
        self.shares: dict[str, set[str]] = {}
        self.files: dict[tuple[str, str], bytes] = {}
        self.connection_strings: list[str] = []
        self.upload_error: Exception | None = None

    def factory(self, connection_string: str) -> "FakeShareService":
        self.connection_strings.append(connection_string)
        return FakeShareService(self)


class FakeFileClient:
    def __init__(self, store: FakeShareStore, share: str, directory: str, name: str):
        self._store = store
        self._share = share
        self._directory = directory
        self._path = f"{directory}/{name}" if directory else name

    @property
    def url(self) -> str:
        return f"https://acct.file.core.windows.net/{self._share}/{self._path}"

    async def upload_file(self, data: bytes):
        if self._directory not in self._store.shares[self._share]:
            raise ResourceNotFoundError("ParentNotFound")
        # 先创建空文件，再写入内容，与真实 SDK 的两步上传一致
        self._store.files[(self._share, self._path)] = b""
        if self._store.upload_error:
            raise self._store.upload_error
        self._store.files[(self._share, self._path)] = data

    async def delete_file(self):
        if (self._share, self._path) not in self._store.files:
            raise ResourceNotFoundError("ResourceNotFound")
        del self._store.files[(self._share, self._path)]


class FakeDirectoryClient:
    def __init__(self, store: FakeShareStore, share: str, path: str):
        self._store = store
        self._share = share
        self._path = path

    async def create_directory(self):
        dirs = self._store.shares[self._share]
        parent = self._path.rsplit("/", 1)[0] if "/" in self._path else ""
        if parent not in dirs:
            raise ResourceNotFoundError("ParentNotFound")
        if self._path in dirs:
            raise ResourceExistsError("ResourceAlreadyExists")
        dirs.add(self._path)

    def get_file_client(self, name: str) -> FakeFileClient:
        return FakeFileClient(self._store, self._share, self._path, name)


class FakeShareClient:
    def __init__(self, store: FakeShareStore, name: str):
        self._store = store
        self._name = name

    async def create_share(self):
        if self._name in self._store.shares:
            raise ResourceExistsError("ShareAlreadyExists")
        self._store.shares[self._name] = {""}  # "" 表示共享根目录

    def get_directory_client(self, directory_path: str = "") -> FakeDirectoryClient:
        return FakeDirectoryClient(self._store, self._name, directory_path)


class FakeShareService:
    def __init__(self, store: FakeShareStore):
        self._store = store

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def get_share_client(self, name: str) -> FakeShareClient:
        return FakeShareClient(self._store, name)


# ==============================================================================
# 夹具
# ==============================================================================


@pytest.fixture
def blob_store():
    """内存中的 Blob 存储"""
    return FakeBlobStore()


@pytest.fixture
def share_store():
    """内存中的文件共享存储"""
    return FakeShareStore()


@pytest.fixture
def speech_client():
    """OpenAI 假客户端：audio.speech.create 返回固定的音频字节"""
    client = MagicMock()
    client.audio.speech.create = AsyncMock(return_value=SimpleNamespace(content=b"ID3-fake-audio"))
    return client
