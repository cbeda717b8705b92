"""
Capability groups and the registration adapter for the Home Assistant MCP server.
"""

from .adapter import (
    CapabilityDescriptor,
    CapabilityRegistry,
    PresentationMode,
    RegistrationCeiling,
    ResourceEntry,
    resource_entries_to_tool_result,
)

__all__ = [
    "CapabilityDescriptor",
    "CapabilityRegistry",
    "PresentationMode",
    "RegistrationCeiling",
    "ResourceEntry",
    "resource_entries_to_tool_result",
]
