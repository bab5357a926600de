"""
OpenAI 文字转语音工具测试

测试场景：
1. 合成成功：返回原始输入文本，音频落盘到输出目录
2. 文本为空/缺失：前置条件失败，不发起合成请求
3. API 异常被包装为 BackendError
4. 节点初始化：选项默认值、凭证解析、缺少 API Key
"""

import pytest
from openai import OpenAIError

from toolnode.config.schema import SpeechConfig
from toolnode.credentials import MappingCredentialResolver
from toolnode.errors import ConfigurationError
from toolnode.nodes.openai_tts import OpenAITextToSpeechNode, OpenAITextToSpeechTool, unique_audio_path


class TestOpenAITextToSpeechTool:
    """语音合成适配器测试"""

    @pytest.mark.asyncio
    async def test_speech_is_saved_and_text_returned(self, speech_client, tmp_path):
        """测试返回原始文本，音频保存为 speech_<时间戳>.<格式>"""
        tool = OpenAITextToSpeechTool(speech_client, voice="nova", output_dir=tmp_path / "audio")

        result = await tool.invoke({"text": "Hello world"})

        assert result.ok
        assert result.text == "Hello world"
        speech_client.audio.speech.create.assert_awaited_once_with(
            model="tts-1", voice="nova", input="Hello world", response_format="mp3")
        files = list((tmp_path / "audio").iterdir())
        assert len(files) == 1
        assert files[0].name.startswith("speech_")
        assert files[0].suffix == ".mp3"
        assert files[0].read_bytes() == b"ID3-fake-audio"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("voice,model,fmt", [
        ("alloy", "tts-1", "mp3"),
        ("shimmer", "tts-1-hd", "wav"),
        ("onyx", "tts-1", "opus"),
    ])
    async def test_output_is_input_for_any_settings(self, speech_client, tmp_path, voice, model, fmt):
        """测试无论音色/模型/格式如何，输出都等于输入文本"""
        tool = OpenAITextToSpeechTool(speech_client, voice=voice, model=model, response_format=fmt,
                                      output_dir=tmp_path)

        result = await tool.invoke({"text": "G'day, mate."})

        assert result.text == "G'day, mate."
        assert [p.suffix for p in tmp_path.iterdir()] == [f".{fmt}"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{"text": ""}, {"text": "   \n"}, {}])
    async def test_empty_text_is_rejected(self, speech_client, tmp_path, params):
        """测试空文本或缺少文本时不发起合成请求"""
        tool = OpenAITextToSpeechTool(speech_client, output_dir=tmp_path)

        result = await tool.invoke(params)

        assert result.error.kind == "precondition"
        assert result.error.message == "No text was provided, can't convert to speech"
        speech_client.audio.speech.create.assert_not_awaited()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self, speech_client, tmp_path):
        """测试 API 异常被包装为 BackendError，且不产生音频文件"""
        speech_client.audio.speech.create.side_effect = OpenAIError("insufficient_quota")
        tool = OpenAITextToSpeechTool(speech_client, output_dir=tmp_path)

        result = await tool.invoke({"text": "Hello"})

        assert result.error.kind == "backend"
        assert result.error.message == "Text to speech failed: Failed to generate speech: insufficient_quota"
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_consecutive_calls_write_separate_files(self, speech_client, tmp_path):
        """测试连续调用不会覆盖之前的音频"""
        tool = OpenAITextToSpeechTool(speech_client, output_dir=tmp_path)

        for _ in range(3):
            assert (await tool.invoke({"text": "again"})).ok

        assert len(list(tmp_path.iterdir())) == 3

    def test_unique_audio_path(self, tmp_path, monkeypatch):
        """测试同一毫秒内的文件名冲突追加序号"""
        monkeypatch.setattr("toolnode.nodes.openai_tts.timestamp_ms", lambda: 1700000000000)
        (tmp_path / "speech_1700000000000.mp3").write_bytes(b"")
        (tmp_path / "speech_1700000000000-1.mp3").write_bytes(b"")

        assert unique_audio_path(tmp_path, "mp3").name == "speech_1700000000000-2.mp3"


class TestOpenAITextToSpeechNode:
    """语音合成节点测试"""

    @pytest.fixture
    def api_keys(self):
        return []

    @pytest.fixture
    def node(self, speech_client, tmp_path, api_keys):
        def factory(api_key):
            api_keys.append(api_key)
            return speech_client

        return OpenAITextToSpeechNode(SpeechConfig(output_dir=str(tmp_path)), client_factory=factory)

    @pytest.mark.asyncio
    async def test_initialize_with_credential(self, node, api_keys):
        """测试凭证解析出的 API Key 用于构造客户端，选项取默认值"""
        resolver = MappingCredentialResolver({"cred-openai": {"openAIApiKey": "sk-test"}})

        tool = await node.initialize({}, "cred-openai", resolver)

        assert api_keys == ["sk-test"]
        assert (tool.voice, tool.model, tool.response_format) == ("alloy", "tts-1", "mp3")

    @pytest.mark.asyncio
    async def test_initialize_with_options(self, node):
        """测试配置选项"""
        resolver = MappingCredentialResolver({"cred-openai": {"openAIApiKey": "sk-test"}})

        tool = await node.initialize({"voice": "fable", "model": "tts-1-hd", "format": "flac"},
                                     "cred-openai", resolver)

        assert (tool.voice, tool.model, tool.response_format) == ("fable", "tts-1-hd", "flac")

    @pytest.mark.asyncio
    async def test_invalid_voice(self, node):
        """测试非法音色在初始化时被拒绝"""
        with pytest.raises(ConfigurationError) as exc_info:
            await node.initialize({"voice": "robot"})

        assert exc_info.value.field == "voice"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, node, api_keys):
        """测试没有 API Key 时初始化失败，不构造客户端"""
        with pytest.raises(ConfigurationError) as exc_info:
            await node.initialize({})

        assert exc_info.value.field == "openAIApiKey"
        assert api_keys == []

    def test_descriptor(self, node):
        """测试节点元数据"""
        descriptor = node.describe()

        assert descriptor.type == "Tool"
        assert descriptor.credential.credential_names == ("openAIApi",)
        assert descriptor.get_input("voice").allowed_values == ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]
        assert descriptor.get_input("format").default == "mp3"
