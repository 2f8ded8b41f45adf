"""
MCP Server Implementation for Python
Reference: https://modelcontextprotocol.io/specification/2024-11-05
"""

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from rail12306.constants.system import SystemConstants
from rail12306.utils.logging_config import get_logger

logger = get_logger(__name__)

SERVER_INSTRUCTIONS = (
    "该服务主要用于帮助用户查询火车票信息、中转方案、特定列车的经停站信息以及相关的车站信息。\n"
    "* 用户使用相对日期（如“明天”）时，先调用 get_current_date 获取当前日期再计算。\n"
    "* 车票查询需要车站编码，先通过城市或车站名查询工具获取，严禁直接使用中文地名。\n"
    "* 用户信息不足以调用接口时，请向用户追问缺失的信息。"
)


class PropertyType(Enum):
    """
    属性类型枚举.
    """

    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"


@dataclass
class Property:
    """
    MCP工具属性定义.
    """

    name: str
    type: PropertyType
    default_value: Optional[Any] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    @property
    def has_default_value(self) -> bool:
        return self.default_value is not None

    def value(self, value: Any) -> Any:
        """
        验证并返回值.
        """
        if self.type == PropertyType.INTEGER:
            if self.min_value is not None and value < self.min_value:
                raise ValueError(
                    f"Value {value} is below minimum allowed: {self.min_value}"
                )
            if self.max_value is not None and value > self.max_value:
                raise ValueError(
                    f"Value {value} exceeds maximum allowed: {self.max_value}"
                )
        return value

    def to_json(self) -> Dict[str, Any]:
        """
        转换为JSON格式.
        """
        result = {"type": self.type.value}

        if self.has_default_value:
            result["default"] = self.default_value

        if self.type == PropertyType.INTEGER:
            if self.min_value is not None:
                result["minimum"] = self.min_value
            if self.max_value is not None:
                result["maximum"] = self.max_value

        return result


@dataclass
class PropertyList:
    """
    属性列表.
    """

    properties: List[Property] = field(default_factory=list)

    def __init__(self, properties: Optional[List[Property]] = None):
        self.properties = properties or []

    def __getitem__(self, name: str) -> Property:
        for prop in self.properties:
            if prop.name == name:
                return prop
        raise KeyError(f"Property not found: {name}")

    def get_required(self) -> List[str]:
        """
        获取必需的属性名称列表.
        """
        return [p.name for p in self.properties if not p.has_default_value]

    def to_json(self) -> Dict[str, Any]:
        return {prop.name: prop.to_json() for prop in self.properties}

    def parse_arguments(self, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        解析并验证参数.
        """
        result = {}

        for prop in self.properties:
            if arguments and prop.name in arguments:
                value = arguments[prop.name]
                # bool 是 int 的子类，需要先排除
                if prop.type == PropertyType.BOOLEAN and isinstance(value, bool):
                    result[prop.name] = value
                elif (
                    prop.type == PropertyType.INTEGER
                    and isinstance(value, (int, float))
                    and not isinstance(value, bool)
                ):
                    result[prop.name] = prop.value(int(value))
                elif prop.type == PropertyType.STRING and isinstance(value, str):
                    result[prop.name] = value
                else:
                    raise ValueError(f"Invalid type for property {prop.name}")
            elif prop.has_default_value:
                result[prop.name] = prop.default_value
            else:
                raise ValueError(f"Missing required argument: {prop.name}")

        return result


@dataclass
class McpTool:
    """
    MCP工具定义.
    """

    name: str
    description: str
    properties: PropertyList
    callback: Callable[[Dict[str, Any]], Any]

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": self.properties.to_json(),
                "required": self.properties.get_required(),
            },
        }

    async def call(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """
        调用工具，返回MCP content结构.
        """
        try:
            parsed_args = self.properties.parse_arguments(arguments)

            if asyncio.iscoroutinefunction(self.callback):
                result = await self.callback(parsed_args)
            else:
                result = self.callback(parsed_args)

            # 格式化返回值
            if isinstance(result, bool):
                text = "true" if result else "false"
            else:
                text = str(result)

            return {"content": [{"type": "text", "text": text}], "isError": False}

        except Exception as e:
            logger.error(f"Error calling tool {self.name}: {e}", exc_info=True)
            return {"content": [{"type": "text", "text": str(e)}], "isError": True}


@dataclass
class McpResource:
    """
    MCP资源定义，读取时由回调生成文本内容.
    """

    uri: str
    name: str
    description: str
    callback: Callable[[], Any]
    mime_type: str = "application/json"

    def to_json(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }

    async def read(self) -> Dict[str, Any]:
        if asyncio.iscoroutinefunction(self.callback):
            text = await self.callback()
        else:
            text = self.callback()
        return {"uri": self.uri, "mimeType": self.mime_type, "text": text}


class McpServer:
    """
    MCP服务器实现.
    """

    _instance = None

    @classmethod
    def get_instance(cls):
        """
        获取单例实例.
        """
        if cls._instance is None:
            cls._instance = McpServer()
        return cls._instance

    def __init__(self):
        self.tools: List[McpTool] = []
        self.resources: List[McpResource] = []
        self._send_callback: Optional[Callable[[str], Awaitable[None]]] = None

    def set_send_callback(self, callback: Callable[[str], Awaitable[None]]):
        """
        设置发送消息的回调函数.
        """
        self._send_callback = callback

    def add_tool(self, tool: Union[McpTool, Tuple[str, str, PropertyList, Callable]]):
        """
        添加工具.
        """
        if isinstance(tool, tuple):
            name, description, properties, callback = tool
            tool = McpTool(name, description, properties, callback)

        if any(t.name == tool.name for t in self.tools):
            logger.warning(f"Tool {tool.name} already added")
            return

        logger.info(f"Add tool: {tool.name}")
        self.tools.append(tool)

    def add_resource(
        self, resource: Union[McpResource, Tuple[str, str, str, Callable]]
    ):
        """
        添加资源.
        """
        if isinstance(resource, tuple):
            resource = McpResource(*resource)

        if any(r.uri == resource.uri for r in self.resources):
            logger.warning(f"Resource {resource.uri} already added")
            return

        logger.info(f"Add resource: {resource.uri}")
        self.resources.append(resource)

    def add_railway_tools(self):
        """
        注册12306铁路查询工具.
        """
        from rail12306.mcp.tools.railway import get_railway_manager

        railway_manager = get_railway_manager()
        railway_manager.init_tools(self.add_tool, PropertyList, Property, PropertyType)
        railway_manager.init_resources(self.add_resource)

    async def parse_message(self, message: Union[str, Dict[str, Any]]):
        """
        解析MCP消息.
        """
        id = None
        try:
            data = json.loads(message) if isinstance(message, str) else message

            logger.debug(f"[MCP] 解析消息: {json.dumps(data, ensure_ascii=False)}")

            if data.get("jsonrpc") != "2.0":
                logger.error(f"Invalid JSONRPC version: {data.get('jsonrpc')}")
                return

            method = data.get("method")
            if not method:
                logger.error("Missing method")
                return

            # 忽略通知
            if method.startswith("notifications"):
                logger.info(f"[MCP] 忽略通知消息: {method}")
                return

            params = data.get("params") or {}
            id = data.get("id")

            if id is None:
                logger.error(f"Invalid id for method: {method}")
                return

            logger.info(f"[MCP] 处理方法: {method}, ID: {id}")

            if method == "initialize":
                await self._handle_initialize(id, params)
            elif method == "ping":
                await self._reply_result(id, {})
            elif method == "tools/list":
                await self._handle_tools_list(id, params)
            elif method == "tools/call":
                await self._handle_tool_call(id, params)
            elif method == "resources/list":
                await self._reply_result(
                    id, {"resources": [r.to_json() for r in self.resources]}
                )
            elif method == "resources/read":
                await self._handle_resource_read(id, params)
            else:
                logger.error(f"Method not implemented: {method}")
                await self._reply_error(id, f"Method not implemented: {method}")

        except Exception as e:
            logger.error(f"Error parsing MCP message: {e}", exc_info=True)
            if id is not None:
                await self._reply_error(id, str(e))

    async def _handle_initialize(self, id: Union[int, str], params: Dict[str, Any]):
        """
        处理初始化请求.
        """
        client_info = params.get("clientInfo", {})
        logger.info(f"[MCP] 客户端: {client_info.get('name', 'unknown')}")

        result = {
            "protocolVersion": SystemConstants.MCP_PROTOCOL_VERSION,
            "capabilities": {"resources": {}, "tools": {}},
            "serverInfo": {
                "name": SystemConstants.APP_NAME,
                "version": SystemConstants.APP_VERSION,
            },
            "instructions": SERVER_INSTRUCTIONS,
        }

        await self._reply_result(id, result)

    async def _handle_tools_list(self, id: Union[int, str], params: Dict[str, Any]):
        """
        处理工具列表请求.
        """
        cursor = params.get("cursor", "")
        max_payload_size = 8000

        tools_json = []
        total_size = 0
        found_cursor = not cursor
        next_cursor = ""

        for tool in self.tools:
            # 如果还没找到起始位置，继续搜索
            if not found_cursor:
                if tool.name == cursor:
                    found_cursor = True
                else:
                    continue

            tool_json = tool.to_json()
            tool_size = len(json.dumps(tool_json))

            # 单个工具超出限制时也至少返回一个，避免分页死循环
            if tools_json and total_size + tool_size + 100 > max_payload_size:
                next_cursor = tool.name
                break

            tools_json.append(tool_json)
            total_size += tool_size

        result = {"tools": tools_json}
        if next_cursor:
            result["nextCursor"] = next_cursor

        await self._reply_result(id, result)

    async def _handle_tool_call(self, id: Union[int, str], params: Dict[str, Any]):
        """
        处理工具调用请求.
        """
        tool_name = params.get("name")
        if not tool_name:
            await self._reply_error(id, "Missing tool name")
            return

        tool = next((t for t in self.tools if t.name == tool_name), None)
        if not tool:
            await self._reply_error(id, f"Unknown tool: {tool_name}")
            return

        arguments = params.get("arguments") or {}
        logger.info(f"[MCP] 开始执行工具 {tool_name}, 参数: {arguments}")

        result = await tool.call(arguments)
        logger.info(
            f"[MCP] 工具 {tool_name} 执行完成, isError={result['isError']}"
        )
        await self._reply_result(id, result)

    async def _handle_resource_read(
        self, id: Union[int, str], params: Dict[str, Any]
    ):
        """
        处理资源读取请求.
        """
        uri = params.get("uri")
        resource = next((r for r in self.resources if r.uri == uri), None)
        if not resource:
            await self._reply_error(id, f"Unknown resource: {uri}")
            return

        logger.info(f"[MCP] 读取资源 {uri}")
        await self._reply_result(id, {"contents": [await resource.read()]})

    async def _reply_result(self, id: Union[int, str], result: Any):
        """
        发送成功响应.
        """
        payload = {"jsonrpc": "2.0", "id": id, "result": result}
        await self._send(payload)

    async def _reply_error(self, id: Union[int, str], message: str):
        """
        发送错误响应.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": id,
            "error": {"code": -32603, "message": message},
        }
        logger.error(f"[MCP] 发送错误响应: ID={id}, 错误={message}")
        await self._send(payload)

    async def _send(self, payload: Dict[str, Any]):
        if self._send_callback:
            await self._send_callback(json.dumps(payload, ensure_ascii=False))
        else:
            logger.error("[MCP] 发送回调未设置!")
