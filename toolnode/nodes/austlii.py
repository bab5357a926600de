"""
AustLII 检索工具模块 (nodes/austlii.py)

模块职责：
    在 AustLII（澳大利亚法律信息研究所）检索法律文档，返回结果的标题和链接：
      - AustLiiSearchNode: 节点描述，可选配置 baseURL
      - AustLiiSearchTool: 适配器，GET <baseURL>?q=<编码后的查询> 并解析返回的 HTML

输出格式：
    每个可见文本非空的 <a href> 生成一条记录：
        Title: <链接文本>
        Link: <绝对地址>
        --------------------------------------------------（50 个 -）
    记录之间以空行分隔；没有任何记录时返回 "No results found."

技术选型：
    - HTTP 客户端：httpx（异步，跟随重定向）
    - HTML 解析：lxml.html
"""

from typing import Any
from urllib.parse import quote, urljoin, urlparse

import httpx
import lxml.html
from lxml import etree
from loguru import logger

from toolnode.config.schema import SearchConfig
from toolnode.errors import BackendError
from toolnode.nodes.base import ConfigField, Node, NodeDescriptor, build_base_classes
from toolnode.tools.base import Tool
from toolnode.utils.helpers import truncate_string

MAX_REDIRECTS = 5
DIVIDER = "-" * 50
NO_RESULTS = "No results found."

# 与 JavaScript encodeURIComponent 保持一致的保留字符
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_search_url(base_url: str, query: str) -> str:
    """拼接检索地址：<base_url>?q=<百分号编码的查询串>。"""
    return f"{base_url}?q={quote(query, safe=_URI_COMPONENT_SAFE)}"


def site_origin(url: str) -> str:
    """取出 URL 的源（scheme://host[:port]），用于把相对链接补全为绝对地址。"""
    p = urlparse(url)
    return f"{p.scheme}://{p.netloc}"


def format_results(html: str | bytes, origin: str, encoding: str | None = None) -> str:
    """
    从 HTML 中提取链接并格式化为检索结果文本。

    参数:
        html: 检索结果页面（原始字节或已解码的文本）
        origin: 站点源，相对 href 会以它为基准补全；绝对 href 保持不变
        encoding: 响应头声明的字符集；为 None 时由 lxml 按 XML 声明或 meta 标签识别

    返回:
        str: 格式化的结果列表，或 "No results found."
    """
    if not html.strip():
        return NO_RESULTS
    try:
        parser = lxml.html.HTMLParser(encoding=encoding) if encoding and isinstance(html, bytes) else None
        doc = lxml.html.fromstring(html, parser=parser)
    except etree.ParserError:
        # 只有注释、DOCTYPE 或处理指令的页面没有任何元素
        return NO_RESULTS
    records = []
    for anchor in doc.iter("a"):
        href = anchor.get("href")
        if href is None:
            continue
        title = anchor.text_content().strip()
        if not title:
            continue
        link = urljoin(origin, href.strip())
        records.append(f"Title: {title}\nLink: {link}\n{DIVIDER}")
    return "\n\n".join(records) if records else NO_RESULTS


class AustLiiSearchTool(Tool):
    """
    AustLII 检索适配器。

    非 200 响应和传输层异常都会转换为 BackendError，错误消息中带有状态码或异常信息。
    """

    name = "austlii_search"
    description = "Search AustLII for legal documents and return the result titles and links"
    operation = "AustLII search"
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query", "minLength": 1}
        },
        "required": ["query"]
    }

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        参数:
            base_url: 检索入口地址
            timeout: 请求超时（秒）
            user_agent: 请求头中的 User-Agent
            transport: 可选的 httpx 传输层（测试时注入 MockTransport）
        """
        self.base_url = base_url
        self.origin = site_origin(base_url)
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    async def execute(self, query: str, **kwargs: Any) -> str:
        url = build_search_url(self.base_url, query)
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        logger.debug(f"AustLII search: {truncate_string(query)}")
        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                max_redirects=MAX_REDIRECTS,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                r = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise BackendError(self.operation, f"An exception occurred while fetching results: {e}") from e

        if r.status_code != 200:
            raise BackendError(self.operation, f"Unable to fetch results (HTTP {r.status_code})")

        try:
            return format_results(r.content, self.origin, r.charset_encoding)
        except (ValueError, LookupError, etree.LxmlError) as e:
            raise BackendError(self.operation, f"Unable to parse results: {e}") from e


class AustLiiSearchNode(Node):
    """AustLII 检索节点描述。"""

    def __init__(self, config: SearchConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config or SearchConfig()
        self._transport = transport
        self.descriptor = NodeDescriptor(
            label="AustLii Search",
            name="austliiSearch",
            version=1,
            type="SearchTool",
            icon="austliisearch.svg",
            category="Tools",
            description="Search AustLII for legal documents based on a query and return results",
            base_classes=build_base_classes("SearchTool", AustLiiSearchTool),
            inputs=(
                ConfigField(
                    label="Base URL",
                    name="baseURL",
                    type="string",
                    optional=True,
                    placeholder=self.config.base_url,
                ),
            ),
        )

    def create_tool(self, inputs: dict[str, Any], credentials: dict[str, Any]) -> Tool:
        return AustLiiSearchTool(
            base_url=inputs.get("baseURL") or self.config.base_url,
            timeout=self.config.timeout,
            user_agent=self.config.user_agent,
            transport=self._transport,
        )
