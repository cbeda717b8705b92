"""
Capability registration: resource mode, tool mode and the transcoding between them.

Every capability is a :class:`CapabilityDescriptor` paired with an async
handler. Resource-capable handlers take their URI placeholders as keyword
arguments and return a list of :class:`ResourceEntry`. Depending on the
presentation mode chosen at startup, :class:`CapabilityRegistry` registers
them either as MCP resources (literal URI or URI template) or as MCP tools
whose output is flattened into a single text block by
:func:`resource_entries_to_tool_result`.

Failures are captured uniformly: tool callbacks return error-flagged content,
resource callbacks raise ``ResourceError``.
"""

import enum
import functools
import inspect
import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from fastmcp.exceptions import ResourceError
from fastmcp.resources import ResourceContent, ResourceResult
from fastmcp.tools import ToolResult

from ..errors import format_failure

logger = logging.getLogger(__name__)

NO_DATA_FOUND = "No data found"
JSON_MIME_TYPE = "application/json"

_PLACEHOLDER = re.compile(r"{(\w+)}")


class PresentationMode(enum.Enum):
    """How resource-capable capabilities appear on the protocol boundary."""

    RESOURCE = "resource"
    TOOL = "tool"

    @classmethod
    def from_flag(cls, resources_to_tools: bool) -> "PresentationMode":
        return cls.TOOL if resources_to_tools else cls.RESOURCE


@dataclass(frozen=True)
class ResourceEntry:
    """One content entry produced by a resource handler."""

    uri: str
    text: str | None
    mime_type: str | None = JSON_MIME_TYPE

    @classmethod
    def json(cls, uri: str, payload: Any, mime_type: str | None = JSON_MIME_TYPE) -> "ResourceEntry":
        """Entry holding ``payload`` as JSON text; a None payload has no text."""
        text = None if payload is None else json.dumps(payload)
        return cls(uri=uri, text=text, mime_type=mime_type)


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Declarative description of a capability."""

    name: str
    uri: str
    title: str
    description: str
    mime_type: str = JSON_MIME_TYPE
    output_schema: dict[str, Any] | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def placeholders(self) -> list[str]:
        return _PLACEHOLDER.findall(self.uri)

    @property
    def is_template(self) -> bool:
        return bool(self.placeholders)

    def expand(self, **params: Any) -> str:
        """Concrete URI for a set of placeholder values."""
        return _PLACEHOLDER.sub(lambda m: str(params.get(m.group(1), "")), self.uri)


ResourceHandler = Callable[..., Awaitable[list[ResourceEntry]]]
ToolHandler = Callable[..., Awaitable[Any]]


class RegistrationCeiling:
    """Countdown of registrations still allowed; ``-1`` means unlimited."""

    UNLIMITED = -1

    def __init__(self, limit: int = UNLIMITED):
        if limit < self.UNLIMITED:
            raise ValueError(f"Registration limit must be -1 or >= 0, got {limit}")
        self.remaining = limit
        self.accepted = 0
        self.skipped: list[str] = []

    @property
    def unlimited(self) -> bool:
        return self.remaining == self.UNLIMITED

    def acquire(self, name: str) -> bool:
        """Consume one registration slot for ``name``; False when exhausted."""
        if self.unlimited:
            self.accepted += 1
            return True
        if self.remaining == 0:
            logger.warning(f"Limit reached for resources, cannot register {name}")
            self.skipped.append(name)
            return False
        self.remaining -= 1
        self.accepted += 1
        if self.remaining == 0:
            logger.warning(
                f"Limit reached for resources, this is the last one registered: {name}"
            )
        return True


def resource_entries_to_tool_result(
    name: str, entries: Sequence[ResourceEntry], debug: bool = False
) -> ToolResult:
    """Flatten resource entries into one tool text block.

    No entries, or a first entry without text, yields ``"No data found"``.
    Several entries are joined into a JSON array of their texts. URIs and
    MIME types are dropped.
    """
    if debug:
        logger.debug(
            f"Raw resource {name}: "
            + json.dumps([entry.__dict__ for entry in entries], separators=(",", ":"))
        )

    if not entries or not entries[0].text:
        text = NO_DATA_FOUND
    elif len(entries) > 1:
        text = "[" + ",".join(entry.text or "" for entry in entries) + "]"
    else:
        text = entries[0].text

    if debug:
        logger.debug(f"Resource to Tool {name}: {json.dumps({'type': 'text', 'text': text})}")
    return ToolResult(content=text)


def resource_entries_to_resource_result(
    entries: Sequence[ResourceEntry], default_mime_type: str | None = JSON_MIME_TYPE
) -> ResourceResult:
    """Wrap resource entries as FastMCP resource contents, keeping each entry's URI in meta."""
    return ResourceResult(
        contents=[
            ResourceContent(
                entry.text or "",
                mime_type=entry.mime_type or default_mime_type,
                meta={"uri": entry.uri},
            )
            for entry in entries
        ]
    )


def error_tool_result(text: str) -> ToolResult:
    return ToolResult(content=text, meta={"error": True}, is_error=True)


def text_tool_result(payload: Any) -> ToolResult:
    """Tool result with ``payload`` as text (JSON-encoded unless already a string)."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return ToolResult(content=text)


def _with_return_annotation(wrapper: Callable[..., Any], handler: Callable[..., Any], returns: Any) -> None:
    """Expose ``handler``'s parameters on ``wrapper`` with a different return type."""
    signature = inspect.signature(handler)
    wrapper.__signature__ = signature.replace(return_annotation=returns)  # type: ignore[attr-defined]
    wrapper.__annotations__ = {
        **getattr(handler, "__annotations__", {}),
        "return": returns,
    }


class CapabilityRegistry:
    """Single entry point through which capabilities reach the MCP server."""

    def __init__(
        self,
        mcp: Any,
        mode: PresentationMode = PresentationMode.RESOURCE,
        ceiling: RegistrationCeiling | None = None,
        debug: bool = False,
    ):
        self.mcp = mcp
        self.mode = mode
        self.ceiling = ceiling or RegistrationCeiling()
        self.debug = debug
        self.registered: dict[str, str] = {}

    def register_resource_or_tool(
        self, descriptor: CapabilityDescriptor, handler: ResourceHandler
    ) -> bool:
        """Register a resource-capable capability in the configured mode.

        Returns False when the registration ceiling skipped it.
        """
        if not self.ceiling.acquire(descriptor.name):
            return False

        if self.mode is PresentationMode.TOOL:
            self._register_as_tool(descriptor, handler)
        else:
            self._register_as_resource(descriptor, handler)
        return True

    def _register_as_tool(self, descriptor: CapabilityDescriptor, handler: ResourceHandler) -> None:
        name = descriptor.name
        debug = self.debug

        @functools.wraps(handler)
        async def tool_callback(**kwargs: Any) -> ToolResult:
            try:
                entries = await handler(**kwargs)
            except Exception as e:
                logger.error(f"Capability {name} failed: {e}")
                return error_tool_result(format_failure(f"Failed to run {name}", e))
            return resource_entries_to_tool_result(name, entries, debug=debug)

        _with_return_annotation(tool_callback, handler, ToolResult)
        self.mcp.tool(
            name=name,
            title=descriptor.title,
            description=descriptor.description,
            output_schema=None,
            annotations={"readOnlyHint": True, **descriptor.annotations},
        )(tool_callback)
        self.registered[name] = "tool"
        logger.debug(f"Registered {name} as tool")

    def _register_as_resource(
        self, descriptor: CapabilityDescriptor, handler: ResourceHandler
    ) -> None:
        name = descriptor.name
        debug = self.debug

        @functools.wraps(handler)
        async def resource_callback(**kwargs: Any) -> ResourceResult:
            try:
                entries = await handler(**kwargs)
            except Exception as e:
                logger.error(f"Capability {name} failed: {e}")
                raise ResourceError(format_failure(f"Failed to read {name}", e)) from e
            if debug:
                logger.debug(
                    f"Resource {name}: "
                    + json.dumps([entry.__dict__ for entry in entries], separators=(",", ":"))
                )
            return resource_entries_to_resource_result(entries, descriptor.mime_type)

        _with_return_annotation(resource_callback, handler, ResourceResult)
        meta = {"outputSchema": descriptor.output_schema} if descriptor.output_schema else None
        self.mcp.resource(
            descriptor.uri,
            name=name,
            title=descriptor.title,
            description=descriptor.description,
            mime_type=descriptor.mime_type,
            meta=meta,
        )(resource_callback)
        self.registered[name] = "resource"
        logger.debug(f"Registered {name} as resource at {descriptor.uri}")

    def register_tool(
        self,
        name: str,
        title: str,
        description: str,
        handler: ToolHandler,
        failure_prefix: str | Callable[..., str] | None = None,
        annotations: dict[str, Any] | None = None,
    ) -> None:
        """Register a tool-only capability.

        The handler returns a ``ToolResult``, a string or a JSON-serializable
        payload. Exceptions become error-flagged content prefixed with
        ``failure_prefix``, which may be a callable of the
        call arguments. Tool-only capabilities do not count against the
        registration ceiling.
        """
        default_prefix = f"Failed to run {name}"

        @functools.wraps(handler)
        async def tool_callback(**kwargs: Any) -> ToolResult:
            try:
                result = await handler(**kwargs)
            except Exception as e:
                logger.error(f"Tool {name} failed: {e}")
                if callable(failure_prefix):
                    prefix = failure_prefix(**kwargs)
                else:
                    prefix = failure_prefix or default_prefix
                return error_tool_result(format_failure(prefix, e))
            if isinstance(result, ToolResult):
                return result
            return text_tool_result(result)

        _with_return_annotation(tool_callback, handler, ToolResult)
        self.mcp.tool(
            name=name,
            title=title,
            description=description,
            output_schema=None,
            annotations=annotations,
        )(tool_callback)
        self.registered[name] = "tool"
        logger.debug(f"Registered tool {name}")
