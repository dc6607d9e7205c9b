"""Advisory (non-authoritative) flowchart validation."""

from .validator import FlowchartAdvisor, build_prompt, create_client

__all__ = ["FlowchartAdvisor", "build_prompt", "create_client"]
