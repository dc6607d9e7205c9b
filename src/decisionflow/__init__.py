"""decisionflow - decision flowchart editor core: layout, routing and YAML codec."""

from typing import TYPE_CHECKING

__all__ = ["Settings", "FlowchartSession"]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .session import FlowchartSession


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name == "FlowchartSession":
        from .session import FlowchartSession

        return FlowchartSession
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
