"""Custom exception hierarchy for decisionflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class DecisionFlowException(Exception):
    """Base exception type for all decisionflow errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(DecisionFlowException):
    """Raised when configuration is missing or invalid."""


class FormatError(DecisionFlowException):
    """Raised when serialized flowchart text is malformed or ambiguous."""


class StartNodeReferenceError(DecisionFlowException):
    """Raised when the start node ID does not name an existing node."""


@dataclass
class CycleError(DecisionFlowException):
    """Raised when the flowchart is not a directed acyclic graph."""

    nodes: List[str] = field(default_factory=list)


@dataclass
class FlowValidationError(DecisionFlowException):
    """Raised when a user edit is rejected (empty ID, duplicate ID, ...)."""

    code: str = "VALIDATION_FAILED"


class AdvisorError(DecisionFlowException):
    """Raised when the advisory validator call fails."""
