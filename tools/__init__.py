"""Tools package: JSON parsing, cancellation, local CLIs, and external clients."""

from tools.agent_sdk_client import AgentSDKClient
from tools.cancellation import CancellationToken
from tools.json_parsing import extract_json, require_fields
from tools.local_cli import LocalCapabilities, LocalCapabilityProbe, run_cli
from tools.research_client import ResearchClient

__all__ = [
    "AgentSDKClient",
    "CancellationToken",
    "extract_json",
    "require_fields",
    "LocalCapabilities",
    "LocalCapabilityProbe",
    "run_cli",
    "ResearchClient",
]
