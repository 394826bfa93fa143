"""
picoGraph compiler: NodeGraph → PICO-8 Lua
==========================================

Public API
----------
    from picograph.compiler import compile_graph, LuaGenerator

    lua = compile_graph(graph, variables=[...], settings={"use60Fps": True})

    generator = LuaGenerator(registry)
    lua = generator.generate(graph)

Modules
-------
    formatting  identifier / operator / literal formatting helpers
    symbols     global variable and custom event symbol tables
    context     per-call GenerationState, ExecContext, ValueContext
    generator   LuaGenerator (entry discovery, exec walking, value evaluation)
    writer      CodeWriter line accumulator
    schema      project JSON validation (SchemaError)
"""
from __future__ import annotations

from typing import Any, List, Optional

from ..core.NodeGraph import NodeGraph
from ..noderegistry.NodeRegistry import NodeRegistry
from .generator import LuaGenerator, ProjectSettings

__all__ = ["LuaGenerator", "ProjectSettings", "compile_graph"]


def compile_graph(graph: NodeGraph, registry: Optional[NodeRegistry] = None,
                  variables: Optional[List[Any]] = None, settings: Any = None) -> str:
    return LuaGenerator(registry, settings=settings).generate(graph, variables)
