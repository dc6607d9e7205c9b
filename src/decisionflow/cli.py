"""Command-line entrypoint for working with flowchart YAML files."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .advisor import FlowchartAdvisor
from .config.settings import Settings
from .core.exceptions import DecisionFlowException
from .flowchart.codec import decode_flowchart, encode_flowchart, load_flowchart
from .flowchart.layout import count_edge_crossings
from .flowchart.levels import assign_levels, unreachable_nodes
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def cmd_format(args: argparse.Namespace) -> int:
    text = encode_flowchart(decode_flowchart(_read(args.file)))
    if args.write:
        Path(args.file).write_text(text, encoding="utf-8")
        print(f"Formatted {args.file}")
    else:
        sys.stdout.write(text)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    flowchart = decode_flowchart(_read(args.file))
    start = flowchart.require_start()
    levels = assign_levels(flowchart)
    orphans = unreachable_nodes(flowchart, start)
    print(f"OK: {len(flowchart.nodes)} nodes, depth {max(levels.values(), default=0)}")
    if orphans:
        print("Unreachable from start: " + ", ".join(orphans))
    return 0


def cmd_layout(args: argparse.Namespace) -> int:
    flowchart = load_flowchart(_read(args.file))
    crossings = count_edge_crossings(flowchart)
    if args.json:
        payload = {
            "positions": {
                node_id: flowchart.nodes[node_id].position.to_dict()
                for node_id in flowchart.node_ids()
            },
            "crossings": crossings,
        }
        print(json.dumps(payload, indent=2))
        return 0
    for node_id in flowchart.node_ids():
        position = flowchart.nodes[node_id].position
        print(f"{node_id}\t{position.x:g}\t{position.y:g}")
    print(f"Edge crossings: {crossings}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    text = encode_flowchart(decode_flowchart(_read(args.file)))
    advisor = FlowchartAdvisor(settings=args.settings)
    print(advisor.validate(text))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .api.app import create_app

    settings: Settings = args.settings
    app = create_app(settings=settings)
    app.run(host=args.host or settings.api_host, port=args.port or settings.api_port, debug=args.debug)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="decisionflow", description="Decision flowchart tools")
    sub = parser.add_subparsers(dest="command", required=True)

    fmt = sub.add_parser("format", help="Rewrite a flowchart file in canonical form")
    fmt.add_argument("file")
    fmt.add_argument("--write", action="store_true", help="Write back instead of printing")
    fmt.set_defaults(handler=cmd_format)

    check = sub.add_parser("check", help="Check structure, start node and cycles")
    check.add_argument("file")
    check.set_defaults(handler=cmd_check)

    layout = sub.add_parser("layout", help="Print computed node positions")
    layout.add_argument("file")
    layout.add_argument("--json", action="store_true")
    layout.set_defaults(handler=cmd_layout)

    validate = sub.add_parser("validate", help="Ask the advisory validator about a flowchart")
    validate.add_argument("file")
    validate.set_defaults(handler=cmd_validate)

    serve = sub.add_parser("serve", help="Run the editor API")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--debug", action="store_true")
    serve.set_defaults(handler=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    args.settings = settings
    try:
        return args.handler(args)
    except (DecisionFlowException, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
