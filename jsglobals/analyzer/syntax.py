"""ESTree-shaped syntax nodes shared by the converter and the scope engine."""
from typing import Any, Iterator, List, Optional, Tuple


class SyntaxNode:
    """A node in an ESTree-shaped syntax tree.

    Each node carries a ``type`` tag, its type-specific fields as plain
    attributes (listed in order by ``fields``), its source range and a
    non-owning ``parent`` back-reference. Nodes compare and hash by identity.
    """

    def __init__(self, type: str, *, start: int = 0, end: int = 0,
                 line: int = 1, column: int = 0, **fields: Any):
        self.type = type
        self.start = start
        self.end = end
        self.line = line
        self.column = column
        self.parent: Optional['SyntaxNode'] = None
        self.fields = tuple(fields)
        for name, value in fields.items():
            setattr(self, name, value)

    @property
    def range(self) -> Tuple[int, int]:
        return (self.start, self.end)

    @property
    def ancestors(self) -> List['SyntaxNode']:
        """Enclosing nodes from innermost to outermost."""
        return list(iter_ancestors(self))

    def __repr__(self) -> str:
        name = getattr(self, 'name', None)
        if isinstance(name, str):
            return f"<{self.type} {name!r} at {self.line}:{self.column}>"
        return f"<{self.type} at {self.line}:{self.column}>"


def iter_fields(node: SyntaxNode) -> Iterator[Tuple[str, Any]]:
    """Yield ``(field_name, value)`` for every field of ``node``."""
    for name in node.fields:
        yield name, getattr(node, name)


def iter_child_nodes(node: SyntaxNode) -> Iterator[Tuple[str, SyntaxNode]]:
    """Yield ``(field_name, child)`` for every direct child node.

    List fields are flattened in order; ``None`` entries (array holes,
    absent optional children) are skipped.
    """
    for name, value in iter_fields(node):
        if isinstance(value, SyntaxNode):
            yield name, value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, SyntaxNode):
                    yield name, item


def walk(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Pre-order traversal of ``node`` and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = [child for _, child in iter_child_nodes(current)]
        stack.extend(reversed(children))


def link_parents(root: SyntaxNode) -> SyntaxNode:
    """Point every descendant's ``parent`` at its enclosing node."""
    root.parent = None
    for node in walk(root):
        for _, child in iter_child_nodes(node):
            child.parent = node
    return root


def iter_ancestors(node: SyntaxNode) -> Iterator[SyntaxNode]:
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent
