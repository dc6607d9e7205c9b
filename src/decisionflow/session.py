"""Editing session management.

A session owns the single live flowchart of an editor. Every operation
computes a replacement flowchart first and swaps it in only when the whole
operation succeeded, so a failed edit or import leaves the live
flowchart exactly as it was. Edits are serialized by a lock, so overlapping
requests on a threaded server never commit over each other.

Session flow:
1. Start from the sample document (or a given flowchart)
2. Add, edit, rename, move and delete nodes; edit declared inputs
3. Auto-layout on demand; import replaces the flowchart and lays it out
4. Export the canonical YAML or hand it to the advisory validator
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Iterable, Mapping, Optional

from .advisor import FlowchartAdvisor
from .flowchart import editing
from .flowchart.codec import YAML_MIME_TYPE, encode_flowchart, export_filename, load_flowchart
from .flowchart.layout import LayoutConfig, layout_flowchart
from .flowchart.model import FlowInput, Flowchart
from .flowchart.samples import sample_flowchart
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExportArtifact:
    """A downloadable serialization of the live flowchart."""

    filename: str
    mime_type: str
    content: str


class FlowchartSession:
    """Holds the live flowchart and applies edits atomically."""

    def __init__(
        self,
        flowchart: Optional[Flowchart] = None,
        *,
        advisor: Optional[FlowchartAdvisor] = None,
        layout_config: Optional[LayoutConfig] = None,
    ) -> None:
        self._flowchart = flowchart if flowchart is not None else sample_flowchart()
        self._advisor = advisor
        self._layout_config = layout_config or LayoutConfig()
        self.selected_node_id: Optional[str] = None
        self._lock = Lock()

    @property
    def flowchart(self) -> Flowchart:
        return self._flowchart

    @property
    def yaml_text(self) -> str:
        return encode_flowchart(self._flowchart)

    @property
    def advisor(self) -> FlowchartAdvisor:
        if self._advisor is None:
            self._advisor = FlowchartAdvisor()
        return self._advisor

    def _commit(self, flowchart: Flowchart, action: str, **details: Any) -> Flowchart:
        # Callers hold `_lock` from reading `_flowchart` until this swap.
        self._flowchart = flowchart
        logger.info("Flowchart %s", action, extra=details)
        return flowchart

    def add_node(self, kind: str) -> str:
        with self._lock:
            flowchart, node_id = editing.add_node(self._flowchart, kind)
            self._commit(flowchart, "node added", node_id=node_id, type=kind)
            self.selected_node_id = node_id
        return node_id

    def save_node(self, old_id: str, new_id: str, data: Optional[Mapping[str, Any]] = None) -> Flowchart:
        with self._lock:
            flowchart = editing.save_node(self._flowchart, old_id, new_id, data)
            self.selected_node_id = new_id
            return self._commit(flowchart, "node updated", old_id=old_id, node_id=new_id)

    def delete_node(self, node_id: str) -> Flowchart:
        with self._lock:
            flowchart = editing.delete_node(self._flowchart, node_id)
            if self.selected_node_id == node_id:
                self.selected_node_id = None
            return self._commit(flowchart, "node deleted", node_id=node_id)

    def move_node(self, node_id: str, x: float, y: float) -> Flowchart:
        with self._lock:
            flowchart = editing.move_node(self._flowchart, node_id, x, y)
            return self._commit(flowchart, "node moved", node_id=node_id)

    def set_inputs(self, inputs: Iterable[FlowInput]) -> Flowchart:
        with self._lock:
            flowchart = editing.set_inputs(self._flowchart, inputs)
            return self._commit(flowchart, "inputs updated", input_count=len(flowchart.inputs))

    def set_start_node(self, node_id: str) -> Flowchart:
        with self._lock:
            flowchart = editing.set_start_node(self._flowchart, node_id)
            return self._commit(flowchart, "start node changed", start_node_id=node_id)

    def auto_layout(self) -> Flowchart:
        with self._lock:
            flowchart = layout_flowchart(self._flowchart, config=self._layout_config)
            return self._commit(flowchart, "laid out", node_count=len(flowchart.nodes))

    def load_yaml(self, text: str) -> Flowchart:
        """Import boundary: decode, check the start node, lay out, replace."""
        flowchart = load_flowchart(text, layout=False)
        flowchart = layout_flowchart(flowchart, config=self._layout_config)
        with self._lock:
            self.selected_node_id = None
            return self._commit(flowchart, "loaded from YAML", node_count=len(flowchart.nodes))

    def export_yaml(self, stem: str = "flowchart") -> ExportArtifact:
        return ExportArtifact(
            filename=export_filename(stem),
            mime_type=YAML_MIME_TYPE,
            content=self.yaml_text,
        )

    def request_validation(self) -> str:
        """Send a snapshot of the canonical YAML to the advisory validator.

        Only the snapshot is taken under the lock; the advisor call is not.
        """
        with self._lock:
            snapshot = encode_flowchart(self._flowchart)
        return self.advisor.validate(snapshot)
