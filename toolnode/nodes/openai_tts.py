"""
文字转语音工具模块 (nodes/openai_tts.py)

模块职责：
    使用 OpenAI TTS API 把文本合成为语音，音频文件保存在本地输出目录：
      - OpenAITextToSpeechNode: 节点描述，配置音色、模型、输出格式，凭证类型 openAIApi
      - OpenAITextToSpeechTool: 适配器，每次调用请求一次合成并落盘

返回值约定：
    工具返回的是"原始输入文本"而不是音频文件路径。音频是带外产物（保存在
    <output_dir>/speech_<毫秒时间戳>.<format>），Agent 循环可以继续基于文本推理。

前置条件：
    text 缺失或为空白时抛出 PreconditionError，此时不会发起任何合成请求。

技术选型：
    - openai.AsyncOpenAI（官方 SDK 的异步客户端）
    - 客户端可注入，测试时替换为假实现
"""

from pathlib import Path
from typing import Any

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from toolnode.config.schema import SpeechConfig
from toolnode.credentials import get_credential_param
from toolnode.errors import BackendError, ConfigurationError, PreconditionError
from toolnode.nodes.base import (
    ConfigField,
    CredentialSpec,
    FieldOption,
    Node,
    NodeDescriptor,
    build_base_classes,
)
from toolnode.tools.base import Tool
from toolnode.utils.helpers import ensure_dir, timestamp_ms

VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")


def unique_audio_path(output_dir: Path, fmt: str) -> Path:
    """
    生成不重名的音频文件路径：speech_<毫秒时间戳>.<fmt>。

    同一毫秒内已有同名文件时追加 -1、-2 ... 后缀。
    """
    stem = f"speech_{timestamp_ms()}"
    path = output_dir / f"{stem}.{fmt}"
    n = 1
    while path.exists():
        path = output_dir / f"{stem}-{n}.{fmt}"
        n += 1
    return path


class OpenAITextToSpeechTool(Tool):
    """
    OpenAI 文字转语音适配器。

    音色、模型和输出格式在初始化时确定，每次调用只需提供 text。
    """

    name = "text_to_speech"
    description = ("This tool is used to convert text into speech, "
                   "the output will be the speech in text format.")
    operation = "Text to speech"
    parameters = {
        "type": "object",
        "properties": {
            "text": {
                "type": "string",
                "description": "Text to convert into speech, it will be provided back on the output"
            }
        },
        "required": ["text"]
    }

    def __init__(
        self,
        client: Any,
        voice: str = "alloy",
        model: str = "tts-1",
        response_format: str = "mp3",
        output_dir: str | Path = "./outputs/audio",
    ):
        """
        参数:
            client: AsyncOpenAI 客户端（或具有相同 audio.speech.create 接口的对象）
            voice: 音色
            model: TTS 模型
            response_format: 音频格式，同时决定文件扩展名
            output_dir: 音频输出目录，首次写入时创建
        """
        self._client = client
        self.voice = voice
        self.model = model
        self.response_format = response_format
        self.output_dir = Path(output_dir)

    def check_preconditions(self, params: dict[str, Any]) -> None:
        text = params.get("text")
        if not isinstance(text, str) or not text.strip():
            raise PreconditionError("No text was provided, can't convert to speech")

    async def execute(self, text: str, **kwargs: Any) -> str:
        try:
            response = await self._client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
                response_format=self.response_format,
            )
            audio = response.content
        except OpenAIError as e:
            raise BackendError(self.operation, f"Failed to generate speech: {e}") from e

        path = self._save(audio)
        logger.info(f"Speech saved to {path} ({len(audio)} bytes, voice={self.voice}, model={self.model})")
        return text

    def _save(self, audio: bytes) -> Path:
        """把音频字节写入新文件；写入中途失败时删除残留文件。"""
        try:
            ensure_dir(self.output_dir)
            path = unique_audio_path(self.output_dir, self.response_format)
        except OSError as e:
            raise BackendError(self.operation, f"Failed to prepare output directory: {e}") from e

        try:
            with open(path, "xb") as f:
                f.write(audio)
        except FileExistsError as e:
            raise BackendError(self.operation, f"Failed to save audio: {e}") from e
        except OSError as e:
            path.unlink(missing_ok=True)
            raise BackendError(self.operation, f"Failed to save audio: {e}") from e
        return path


class OpenAITextToSpeechNode(Node):
    """OpenAI 文字转语音节点描述。"""

    def __init__(self, config: SpeechConfig | None = None, client_factory: Any = None):
        """
        参数:
            config: 语音配置（输出目录）
            client_factory: 以 api_key 构造客户端的工厂，默认 AsyncOpenAI
        """
        self.config = config or SpeechConfig()
        self._client_factory = client_factory or (lambda api_key: AsyncOpenAI(api_key=api_key))
        self.descriptor = NodeDescriptor(
            label="OpenAI Text to Speech Tool",
            name="openAITextToSpeechTool",
            version=1,
            type="Tool",
            icon="openai.svg",
            category="Tools",
            description="Convert text to speech using OpenAI TTS API, returns the audio as text",
            base_classes=build_base_classes("Tool", OpenAITextToSpeechTool),
            credential=CredentialSpec(credential_names=("openAIApi",)),
            inputs=(
                ConfigField(
                    label="Voice",
                    name="voice",
                    type="options",
                    options=tuple(FieldOption(label=v.capitalize(), name=v) for v in VOICES),
                    default="alloy",
                ),
                ConfigField(
                    label="Model",
                    name="model",
                    type="options",
                    options=(FieldOption(label="TTS-1", name="tts-1"), FieldOption(label="TTS-1-HD", name="tts-1-hd")),
                    default="tts-1",
                ),
                ConfigField(
                    label="Output Format",
                    name="format",
                    type="options",
                    options=(
                        FieldOption(label="MP3", name="mp3"),
                        FieldOption(label="Opus", name="opus"),
                        FieldOption(label="AAC", name="aac"),
                        FieldOption(label="FLAC", name="flac"),
                        FieldOption(label="WAV", name="wav"),
                    ),
                    default="mp3",
                ),
            ),
        )

    def create_tool(self, inputs: dict[str, Any], credentials: dict[str, Any]) -> Tool:
        api_key = get_credential_param("openAIApiKey", credentials, inputs)
        if not api_key:
            raise ConfigurationError(f"Missing OpenAI API key for node '{self.name}'", field="openAIApiKey")
        return OpenAITextToSpeechTool(
            client=self._client_factory(api_key),
            voice=inputs["voice"],
            model=inputs["model"],
            response_format=inputs["format"],
            output_dir=self.config.output_dir,
        )
