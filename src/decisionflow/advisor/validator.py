"""Advisory flowchart validation through an LLM.

The advisor receives the canonical YAML text and returns free-form advice
about loops, dead ends and unreachable nodes. Its answer is shown to the
user and never applied back to the flowchart.
"""

from __future__ import annotations

from typing import Any, Optional

import anthropic

from ..config.settings import Settings
from ..core.exceptions import AdvisorError, ConfigurationError
from ..utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are an AI expert in analyzing flowcharts represented as YAML code."

VALIDATION_INSTRUCTIONS = """Your task is to identify potential issues within the flowchart, such as:
- Loops: Check for any circular paths that could cause the flowchart to run indefinitely.
- Dead Ends: Identify any nodes that do not lead to a terminator node.
- Unreachable Nodes: Determine if there are any nodes that cannot be reached from the start node.
- Dangling References: Point out any negativePath or positivePath that names a node which does not exist.

Provide a detailed validation result, clearly stating any identified issues.
"""


def build_prompt(yaml_text: str) -> str:
    return (
        VALIDATION_INSTRUCTIONS
        + "\nHere is the YAML code for the flowchart:\n```yaml\n"
        + yaml_text.rstrip()
        + "\n```\n\nNow, perform the validation and provide the result. "
        "Be concise and provide the steps for improvement."
    )


def create_client(settings: Settings) -> anthropic.Anthropic:
    if not settings.anthropic_api_key:
        raise ConfigurationError("Missing ANTHROPIC_API_KEY for the flowchart advisor.")
    kwargs: dict[str, Any] = {"api_key": settings.anthropic_api_key}
    if settings.anthropic_base_url:
        kwargs["base_url"] = settings.anthropic_base_url
    return anthropic.Anthropic(**kwargs)


class FlowchartAdvisor:
    """Text in, text out wrapper around the Messages API."""

    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        settings: Optional[Settings] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self.model = model or (settings.advisor_model if settings else "claude-sonnet-4-5")
        self.max_tokens = max_tokens or (settings.advisor_max_tokens if settings else 2048)

    @property
    def client(self) -> Any:
        # Built lazily so a session without credentials can still edit.
        if self._client is None:
            self._client = create_client(self._settings or Settings())
        return self._client

    def validate(self, yaml_text: str) -> str:
        """Return the advisor's report for `yaml_text`; raises `AdvisorError`."""
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_prompt(yaml_text)}],
            )
        except anthropic.APIError as exc:
            logger.warning("Flowchart validation request failed", extra={"error": str(exc)})
            raise AdvisorError(
                "An error occurred while validating the flowchart.",
                context={"error": str(exc)},
            ) from exc

        text = "".join(
            getattr(block, "text", "") for block in (getattr(response, "content", None) or [])
        ).strip()
        if not text:
            raise AdvisorError("The flowchart advisor returned an empty response.")
        logger.info("Flowchart validation complete", extra={"response_chars": len(text)})
        return text
