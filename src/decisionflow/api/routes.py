"""HTTP routes for the flowchart editor API."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from flask import Flask, Response, jsonify, request

from ..core.exceptions import (
    AdvisorError,
    ConfigurationError,
    CycleError,
    DecisionFlowException,
    FlowValidationError,
    FormatError,
    StartNodeReferenceError,
)
from ..flowchart.model import FlowInput
from ..flowchart.routing import route_flowchart
from ..session import FlowchartSession
from ..utils.logging import get_logger

logger = get_logger(__name__)

ERROR_STATUS = {
    FormatError: (400, "FORMAT_ERROR"),
    StartNodeReferenceError: (422, "START_NODE_NOT_FOUND"),
    CycleError: (422, "CYCLE_DETECTED"),
    AdvisorError: (502, "ADVISOR_FAILED"),
    ConfigurationError: (503, "CONFIGURATION_ERROR"),
}


def error_response(exc: DecisionFlowException) -> Tuple[Response, int]:
    if isinstance(exc, FlowValidationError):
        status = 404 if exc.code == "NODE_NOT_FOUND" else 400
        code = exc.code
    else:
        status, code = ERROR_STATUS.get(type(exc), (400, "ERROR"))
    return jsonify({"success": False, "error": exc.message, "error_code": code}), status


def serialize_session(session: FlowchartSession) -> Dict[str, Any]:
    flowchart = session.flowchart
    payload = flowchart.to_dict()
    payload["connectors"] = [path.to_dict() for path in route_flowchart(flowchart)]
    payload["yaml"] = session.yaml_text
    payload["selectedNodeId"] = session.selected_node_id
    return payload


def register_routes(app: Flask, *, session: FlowchartSession) -> None:
    @app.before_request
    def log_request() -> None:
        logger.info("HTTP %s %s", request.method, request.path)

    @app.errorhandler(DecisionFlowException)
    def handle_flow_error(exc: DecisionFlowException) -> Any:
        logger.warning(
            "Request failed",
            extra={"path": request.path, "error": exc.message, "error_type": type(exc).__name__},
        )
        return error_response(exc)

    def json_body() -> Dict[str, Any]:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}

    def ok(**extra: Any) -> Any:
        payload = {"success": True, "flowchart": serialize_session(session)}
        payload.update(extra)
        return jsonify(payload)

    @app.get("/api/flowchart")
    def get_flowchart() -> Any:
        return jsonify(serialize_session(session))

    @app.get("/api/flowchart/export")
    def export_flowchart() -> Any:
        artifact = session.export_yaml()
        return Response(
            artifact.content,
            mimetype=artifact.mime_type,
            headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
        )

    @app.post("/api/flowchart/import")
    def import_flowchart() -> Any:
        text = json_body().get("yaml")
        if not isinstance(text, str) or not text.strip():
            return jsonify({"success": False, "error": "yaml is required", "error_code": "FORMAT_ERROR"}), 400
        session.load_yaml(text)
        return ok(message="Flowchart has been loaded onto the canvas.")

    @app.post("/api/flowchart/layout")
    def layout() -> Any:
        session.auto_layout()
        return ok(message="Nodes have been rearranged automatically.")

    @app.post("/api/flowchart/validate")
    def validate() -> Any:
        result = session.request_validation()
        return jsonify({"success": True, "validation_result": result})

    @app.post("/api/nodes")
    def add_node() -> Any:
        node_id = session.add_node(str(json_body().get("type") or ""))
        response = ok(node_id=node_id)
        response.status_code = 201
        return response

    @app.put("/api/nodes/<node_id>")
    def save_node(node_id: str) -> Any:
        body = json_body()
        new_id = body.get("id", node_id)
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        session.save_node(node_id, str(new_id if new_id is not None else ""), data)
        return ok(message=f'Node "{node_id}" has been updated successfully.')

    @app.patch("/api/nodes/<node_id>/position")
    def move_node(node_id: str) -> Any:
        body = json_body()
        try:
            x, y = float(body["x"]), float(body["y"])
        except (KeyError, TypeError, ValueError):
            return jsonify({"success": False, "error": "x and y are required numbers", "error_code": "INVALID_POSITION"}), 400
        session.move_node(node_id, x, y)
        return ok()

    @app.delete("/api/nodes/<node_id>")
    def delete_node(node_id: str) -> Any:
        session.delete_node(node_id)
        return ok(message=f'Node "{node_id}" has been removed.')

    @app.put("/api/inputs")
    def set_inputs() -> Any:
        raw = json_body().get("inputs")
        if not isinstance(raw, list):
            return jsonify({"success": False, "error": "inputs must be a list", "error_code": "INVALID_INPUT"}), 400
        try:
            inputs = [FlowInput.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            return jsonify({"success": False, "error": f"Invalid input: {exc}", "error_code": "INVALID_INPUT"}), 400
        session.set_inputs(inputs)
        return ok()

    @app.put("/api/start")
    def set_start() -> Any:
        session.set_start_node(str(json_body().get("id") or ""))
        return ok()
