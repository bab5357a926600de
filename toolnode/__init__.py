"""
toolnode - LLM Agent 工具节点库

模块概述：
    本文件是 toolnode 包的入口文件（__init__.py），定义了包的元信息。
    toolnode 提供一组可被编排运行时（Execution Host）发现、配置和调用的"工具节点"：
    - 节点描述（Node / NodeDescriptor）：静态元数据 + 初始化入口
    - 工具适配器（Tool）：绑定配置与凭证后的运行时实例，统一的 invoke() 调用约定
    - 内置节点：AustLII 法律检索、Azure Blob 上传、Azure File Share 上传、
      OpenAI 文字转语音、本地文件写入
"""

__version__ = "0.1.0"
