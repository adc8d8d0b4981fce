"""
wheelclosure: validate seed wheels and build their transitive dependency
closure from source into a single wheel directory.

Breadth-first walk keyed by canonical package name; a package counts as
satisfied as soon as any wheel for it exists in the store.
"""

from wheelclosure.closure import ClosureBuilder, run_closure
from wheelclosure.entrypoint import WheelhouseRunner, process_wheel
from wheelclosure.loader import BuildContext, load_context

__all__ = [
    "BuildContext",
    "ClosureBuilder",
    "WheelhouseRunner",
    "load_context",
    "process_wheel",
    "run_closure",
]
