"""Parsing and formatting of Newick/NHX phylogenetic trees."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

__all__ = [
    "NewickError",
    "NewickNode",
    "parse",
    "format_tree",
    "MISSING_LEFT",
    "MISSING_RIGHT",
    "BRACKET",
    "COLON",
]

MISSING_LEFT = 0x01
MISSING_RIGHT = 0x02
BRACKET = 0x04
COLON = 0x08

_MESSAGES = {
    MISSING_LEFT: "missing left parenthesis",
    MISSING_RIGHT: "missing right parenthesis",
    BRACKET: "unclosed bracket",
    COLON: "misplaced colon",
}

_FLOAT_RE = re.compile(
    r"[ \t\n\v\f\r]*[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|(?i:inf(?:inity)?|nan))"
)


class NewickError(ValueError):
    """Raised on malformed input; ``code`` holds the error flag."""

    def __init__(self, code: int) -> None:
        super().__init__(_MESSAGES.get(code, "parse error"))
        self.code = code


@dataclass
class NewickNode:
    """One node; ``distance`` is negative when no branch length is given."""

    name: str = ""
    distance: float = -1.0
    parent: int = -1
    children: list[int] = field(default_factory=list)


def _isgraph(ch: str) -> bool:
    return "!" <= ch <= "~"


def _read_node(text: str, pos: int, nodes: list[NewickNode]) -> int:
    """Read a node label from ``pos``; append the node and return the end position."""
    node = NewickNode()
    nodes.append(node)
    begin = pos
    name_end = None
    size = len(text)
    while pos < size and text[pos] not in ",)":
        ch = text[pos]
        if ch == "[":
            if name_end is None:
                name_end = pos
            close = text.find("]", pos + 1)
            if close < 0:
                raise NewickError(BRACKET)
            pos = close
        elif ch == ":":
            if name_end is None:
                name_end = pos
            match = _FLOAT_RE.match(text, pos + 1)
            if match:
                node.distance = float(match.group())
                pos = match.end() - 1
            else:
                node.distance = 0.0
        elif not _isgraph(ch) and name_end is None:
            name_end = pos
        pos += 1
    node.name = text[begin:pos if name_end is None else name_end]
    return pos


def parse(text: str) -> list[NewickNode]:
    """Parse a Newick/NHX string into nodes listed children before parents.

    The root is normally the last node. NHX comments in brackets are skipped.
    """
    nodes: list[NewickNode] = []
    stack: list[int] = []
    pos = 0
    size = len(text)
    while pos < size:
        while pos < size and not _isgraph(text[pos]):
            pos += 1
        if pos >= size:
            break
        ch = text[pos]
        if ch == ",":
            pos += 1
        elif ch == "(":
            stack.append(-1)
            pos += 1
        elif ch == ")":
            try:
                start = len(stack) - 1 - stack[::-1].index(-1)
            except ValueError:
                raise NewickError(MISSING_LEFT) from None
            index = len(nodes)
            pos = _read_node(text, pos + 1, nodes)
            children = stack[start + 1:]
            nodes[index].children = children
            for child in children:
                nodes[child].parent = index
            del stack[start:]
            stack.append(index)
        else:
            stack.append(len(nodes))
            pos = _read_node(text, pos, nodes)
    return nodes


def _format(nodes: Sequence[NewickNode], node: NewickNode, out: list[str]) -> None:
    if node.children:
        out.append("(")
        for i, child in enumerate(node.children):
            if i:
                out.append(",")
            _format(nodes, nodes[child], out)
        out.append(")")
    out.append(node.name)
    if node.distance >= 0:
        out.append(f":{node.distance:g}")


def format_tree(nodes: Sequence[NewickNode], root: int | None = None) -> str:
    """Format the subtree at ``root`` (default: the last node) as Newick."""
    if not nodes:
        raise ValueError("no nodes to format")
    if root is None:
        root = len(nodes) - 1
    out: list[str] = []
    _format(nodes, nodes[root], out)
    return "".join(out)