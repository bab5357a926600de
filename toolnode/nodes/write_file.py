"""
文件写入工具模块 (nodes/write_file.py)

模块职责：
    把 Agent 生成的文本写入本地磁盘：
      - WriteFileNode: 节点描述，可选配置 basePath（默认为配置中的 base_path，再默认为当前工作目录）
      - WriteFileTool: 适配器，写入 <basePath>/<file_path>，缺失的父目录会被自动创建

写入语义：
    - 内容按 UTF-8 原样写入，不做换行符转换
    - 已存在的文件会被覆盖
    - 先写临时文件再原子替换，失败时目标文件保持原状
    - restrict_to_base_path=True 时拒绝写到根目录之外（如 ../../etc/passwd）
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from toolnode.config.schema import FilesConfig
from toolnode.errors import BackendError, PreconditionError
from toolnode.nodes.base import ConfigField, Node, NodeDescriptor, build_base_classes
from toolnode.tools.base import Tool

SUCCESS_MESSAGE = "File written to successfully."


def _resolve_target(base_path: Path, file_path: str, restrict: bool) -> Path:
    """
    把相对路径拼接到根目录下。

    file_path 开头的路径分隔符会被去掉，保证结果总是 <base_path>/<file_path>。

    异常:
        PreconditionError: restrict=True 且目标解析后位于根目录之外
    """
    target = base_path / file_path.lstrip("/\\")
    if restrict and not target.resolve().is_relative_to(base_path.resolve()):
        raise PreconditionError(f"Path {file_path} is outside allowed directory {base_path}")
    return target


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _write_atomic(path: Path, text: str) -> None:
    """
    写入临时文件后用 os.replace 原子替换目标文件。

    覆盖已有文件时沿用其权限位；新文件的权限为 0o666 减去 umask，与普通 open() 创建一致。
    """
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if path.exists():
            shutil.copymode(path, tmp)
        else:
            os.chmod(tmp, 0o666 & ~_current_umask())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class WriteFileTool(Tool):
    """
    文件写入适配器。

    类比 Java: 类似于 Files.createDirectories() + Files.writeString(Path, content)。
    """

    name = "write_file"
    description = "Write file to disk. Creates missing parent directories as needed."
    operation = "Write file"
    parameters = {
        "type": "object",
        "properties": {
            "file_path": {"type": "string", "description": "name of file", "minLength": 1},
            "text": {"type": "string", "description": "text to write to file"}
        },
        "required": ["file_path", "text"]
    }

    def __init__(self, base_path: str | Path, restrict_to_base_path: bool = False):
        self.base_path = Path(base_path).expanduser()
        self.restrict_to_base_path = restrict_to_base_path

    async def execute(self, file_path: str, text: str, **kwargs: Any) -> str:
        target = _resolve_target(self.base_path, file_path, self.restrict_to_base_path)
        try:
            if not target.parent.exists():
                logger.info(f"Directory does not exist, creating: {target.parent}")
            target.parent.mkdir(parents=True, exist_ok=True)
            _write_atomic(target, text)
        except OSError as e:
            raise BackendError(self.operation, f"{file_path}: {e}") from e
        logger.info(f"File successfully written to: {target}")
        return SUCCESS_MESSAGE


class WriteFileNode(Node):
    """文件写入节点描述。"""

    def __init__(self, config: FilesConfig | None = None):
        self.config = config or FilesConfig()
        self.descriptor = NodeDescriptor(
            label="Write File",
            name="writeFile",
            version=1,
            type="WriteFile",
            icon="writefile.svg",
            category="Tools",
            description="Write file to disk. If directory is missing then creates a directory as well",
            base_classes=build_base_classes("WriteFile", WriteFileTool),
            inputs=(
                ConfigField(
                    label="Base Path",
                    name="basePath",
                    type="string",
                    optional=True,
                    placeholder="C:\\Users\\User\\Desktop",
                ),
            ),
        )

    def create_tool(self, inputs: dict[str, Any], credentials: dict[str, Any]) -> Tool:
        base_path = inputs.get("basePath") or self.config.base_path or os.getcwd()
        return WriteFileTool(base_path=base_path, restrict_to_base_path=self.config.restrict_to_base_path)
