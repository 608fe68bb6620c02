"""
Explicit syntax tree traversal with ancestor tracking.

Rules register handlers keyed by a node-shape predicate. The walker visits
nodes depth-first in source order, carrying the chain of ancestors for
each node instead of relying on parent links, and fires exit handlers
once after the whole unit has been visited.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from tree_sitter import Node

Ancestors = tuple[Node, ...]
NodePredicate = Callable[[Node], bool]
NodeHandler = Callable[[Node, Ancestors], None]
ExitHandler = Callable[[], None]


def walk_with_ancestors(root: Node) -> Iterator[tuple[Node, Ancestors]]:
    """Yield every node under root with its ancestors (outermost first)."""
    stack: list[tuple[Node, Ancestors]] = [(root, ())]
    while stack:
        node, ancestors = stack.pop()
        yield node, ancestors
        if node.child_count:
            child_ancestors = ancestors + (node,)
            for child in reversed(node.children):
                stack.append((child, child_ancestors))


@dataclass
class TreeWalker:
    """Dispatches node handlers during a single walk of a unit."""

    _handlers: list[tuple[NodePredicate, NodeHandler]] = field(default_factory=list)
    _exit_handlers: list[ExitHandler] = field(default_factory=list)

    def on(self, predicate: NodePredicate, handler: NodeHandler) -> None:
        """Call handler for every node matching predicate."""
        self._handlers.append((predicate, handler))

    def on_exit(self, handler: ExitHandler) -> None:
        """Call handler once after the walk completes."""
        self._exit_handlers.append(handler)

    def walk(self, root: Node) -> int:
        """Walk the tree and fire handlers. Returns the number of nodes visited."""
        visited = 0
        for node, ancestors in walk_with_ancestors(root):
            visited += 1
            for predicate, handler in self._handlers:
                if predicate(node):
                    handler(node, ancestors)
        for exit_handler in self._exit_handlers:
            exit_handler()
        return visited
