"""
compile_from_json.py: CLI for the picoGraph Lua compiler
=========================================================
Compiles a saved project (or bare graph) JSON file into a PICO-8 Lua script.

Usage
-----
    picograph-compile <project.json> [options]
    python -m picograph.compile_from_json <project.json> [options]

Options
-------
    --out        <dir>    Output directory (default: current directory)
    --print               Print the generated Lua to stdout instead of writing a file
    --use-60fps           Emit _update60 instead of _update (overrides project settings)
    --strict              Treat unknown node types as errors (default: warnings only)
    --log-level  <level>  Logging level (default: WARNING)

Examples
--------
    # Compile next to the project file's name in the current directory:
    picograph-compile examples/bouncing_ball.json

    # Compile into a cart folder at 60 fps:
    picograph-compile examples/bouncing_ball.json --out carts/ --use-60fps

    # Print the generated Lua without writing a file:
    picograph-compile examples/bouncing_ball.json --print
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="picograph-compile",
        description="Compile a picoGraph project JSON file to PICO-8 Lua.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "project_json",
        metavar="project.json",
        help="Path to the project JSON file to compile.",
    )
    p.add_argument(
        "--out",
        metavar="DIR",
        default=".",
        help="Output directory for the compiled .lua file (default: current directory).",
    )
    p.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated Lua to stdout instead of writing a file.",
    )
    p.add_argument(
        "--use-60fps",
        dest="use_60fps",
        action="store_true",
        help="Emit _update60 instead of _update regardless of project settings.",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Treat unknown node types as errors rather than warnings.",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    return p


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    json_path = Path(args.project_json)
    if not json_path.exists():
        print(f"[error] File not found: {json_path}", file=sys.stderr)
        return 1

    from picograph.compiler import LuaGenerator, ProjectSettings
    from picograph.compiler.schema import SchemaError, validate_file
    from picograph.core import PinSync
    from picograph.core.NodeGraph import NodeGraph
    from picograph.noderegistry.library import create_default_registry

    registry = create_default_registry()

    # ── Validate JSON ────────────────────────────────────────────────────────
    try:
        project = validate_file(json_path, registry=registry, strict=args.strict)
    except json.JSONDecodeError as exc:
        print(f"[error] Invalid JSON: {exc}", file=sys.stderr)
        return 1
    except SchemaError as exc:
        print(f"[error] Schema validation failed: {exc}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as exc:
        print(f"[error] Could not read {json_path}: {exc}", file=sys.stderr)
        return 1

    settings = ProjectSettings.from_value(project["settings"])
    if args.use_60fps:
        settings.use_60_fps = True

    graph = NodeGraph.from_dict(project["graph"])
    PinSync.sync_variable_nodes(graph, project["variables"])
    if not args.print_only:
        # stdout carries only the Lua under --print.
        print(f"[compile_from_json] project     : {json_path.stem}")
        print(f"[compile_from_json] nodes       : {len(graph.get_nodes())}")
        print(f"[compile_from_json] connections : {len(graph.get_connections())}")
        print(f"[compile_from_json] variables   : {len(project['variables'])}")

    # ── Emit ─────────────────────────────────────────────────────────────────
    generator = LuaGenerator(registry, settings=settings)
    source = generator.generate(graph, project["variables"])

    # ── Output ───────────────────────────────────────────────────────────────
    if args.print_only:
        print(source)
        return 0

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{json_path.stem}.lua"
    out_path.write_text(source + "\n", encoding="utf-8")

    print(f"[compile_from_json] wrote       : {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
