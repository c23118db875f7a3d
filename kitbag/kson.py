"""A lenient parser for JSON-like text with quoted or bare values."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

__all__ = [
    "NodeType",
    "KsonError",
    "Node",
    "parse",
    "format_node",
    "main",
    "ERR_EXTRA_LEFT",
    "ERR_EXTRA_RIGHT",
    "ERR_NO_KEY",
]

ERR_EXTRA_LEFT = 1
ERR_EXTRA_RIGHT = 2
ERR_NO_KEY = 3

_MESSAGES = {
    ERR_EXTRA_LEFT: "unmatched left bracket",
    ERR_EXTRA_RIGHT: "unmatched right bracket",
    ERR_NO_KEY: "missing key",
}

_BRACKET = -1
_BRACE = -2
_COLON = -3
_SPACE = " \t\n\v\f\r"


class NodeType(IntEnum):
    """Kind of a node."""

    NO_QUOTE = 1
    SGL_QUOTE = 2
    DBL_QUOTE = 3
    BRACKET = 4
    BRACE = 5


class KsonError(ValueError):
    """Raised when text cannot be parsed; ``code`` holds the error number."""

    def __init__(self, code: int) -> None:
        super().__init__(_MESSAGES.get(code, "parse error"))
        self.code = code


@dataclass
class Node:
    """A value, or a list (BRACKET) or object (BRACE) of child nodes.

    Values are kept as the raw text between the quotes, escapes included.
    """

    type: NodeType = NodeType.NO_QUOTE
    key: str | None = None
    value: str | None = None
    children: list[Node] = field(default_factory=list)

    def is_internal(self) -> bool:
        """Whether the node is a list or an object."""
        return self.type in (NodeType.BRACKET, NodeType.BRACE)

    def by_key(self, key: str) -> Node | None:
        """First child with ``key``, or None."""
        if not self.is_internal():
            return None
        return next((child for child in self.children if child.key == key), None)

    def by_index(self, index: int) -> Node | None:
        """Child at ``index``, or None when out of range."""
        if not self.is_internal():
            return None
        return self.children[index] if 0 <= index < len(self.children) else None

    def by_path(self, *args: str | int) -> Node | None:
        """Follow keys through objects and indices through lists."""
        node: Node | None = self
        for step in args:
            if node is None:
                break
            if node.type is NodeType.BRACE:
                node = node.by_key(str(step))
            elif node.type is NodeType.BRACKET:
                node = node.by_index(int(step))
            else:
                break
        return node


def parse(text: str) -> Node:
    """Parse ``text`` and return its top-level node; raise KsonError on failure.

    Characters after the first complete object are ignored.
    """
    nodes: list[Node] = []
    stack: list[int] = []
    error = 0
    pos = 0
    size = len(text)
    while pos < size:
        while pos < size and text[pos] in _SPACE:
            pos += 1
        if pos >= size:
            break
        ch = text[pos]
        if ch == ",":
            pass
        elif ch in "[{":
            marker = _BRACKET if ch == "[" else _BRACE
            kind = NodeType.BRACKET if ch == "[" else NodeType.BRACE
            if len(stack) < 2 or stack[-1] != _COLON:
                stack.append(len(nodes))
                nodes.append(Node(type=kind))
                stack.append(marker)
            else:
                stack[-1] = marker
                nodes[stack[-2]].type = kind
        elif ch in "]}":
            marker = _BRACKET if ch == "]" else _BRACE
            try:
                start = len(stack) - 1 - stack[::-1].index(marker)
            except ValueError:
                error = ERR_EXTRA_RIGHT
                break
            node = nodes[stack[start - 1]]
            node.key = node.value
            node.value = None
            node.type = NodeType.BRACKET if ch == "]" else NodeType.BRACE
            node.children = [nodes[i] for i in stack[start + 1:] if i >= 0]
            del stack[start:]
            if len(stack) == 1:
                break
        elif ch == ":":
            if not stack or stack[-1] == _COLON:
                error = ERR_NO_KEY
                break
            stack.append(_COLON)
        else:
            if len(stack) >= 2 and stack[-1] == _COLON:
                stack.pop()
                if stack[-1] < 0:
                    error = ERR_NO_KEY
                    break
                node = nodes[stack[-1]]
                node.key = node.value
            else:
                stack.append(len(nodes))
                node = Node()
                nodes.append(node)
            if ch in "'\"":
                begin = end = pos + 1
                while end < size and text[end] != ch:
                    end += 2 if text[end] == "\\" else 1
                end = min(end, size)
                node.type = NodeType.SGL_QUOTE if ch == "'" else NodeType.DBL_QUOTE
                node.value = text[begin:end]
                pos = end
            else:
                end = pos
                while end < size and text[end] not in "]},:\n":
                    end += 2 if text[end] == "\\" else 1
                end = min(end, size)
                node.type = NodeType.NO_QUOTE
                node.value = text[pos:end]
                pos = end - 1
        pos += 1
    if len(stack) != 1:
        error = ERR_EXTRA_LEFT
    if error:
        raise KsonError(error)
    return nodes[0]


def _format(node: Node, depth: int, out: list[str]) -> None:
    if node.key is not None:
        out.append(f'"{node.key}":')
    if node.is_internal():
        out.append("[" if node.type is NodeType.BRACKET else "{")
        if node.children:
            indent = "\n" + "  " * (depth + 1)
            out.append(indent)
            for i, child in enumerate(node.children):
                if i:
                    out.append("," + indent)
                _format(child, depth + 1, out)
            out.append("\n" + "  " * depth)
        out.append("]" if node.type is NodeType.BRACKET else "}")
    else:
        quote = {NodeType.SGL_QUOTE: "'", NodeType.DBL_QUOTE: '"'}.get(node.type, "")
        out.append(f"{quote}{node.value or ''}{quote}")


def format_node(node: Node) -> str:
    """Render ``node`` with two-space indentation."""
    out: list[str] = []
    _format(node, 0, out)
    return "".join(out)


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


_DEMO = "{'a' : 1,'b':[0,'isn\\'t',true],'d':[{\n\n\n}]}"


def main(argv: Sequence[str] | None = None) -> int:
    """Parse and pretty-print a file, then optionally follow a path into it."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        try:
            root = parse(_DEMO)
        except KsonError:
            print("Failed to parse")
            return 0
        found = root.by_path("b", 1)
        if found is not None:
            print(f"*** {found.value}")
        else:
            print("!!! not found")
        print(format_node(root))
        return 0
    try:
        with open(args[0], encoding="utf-8", errors="replace") as handle:
            text = handle.read()
    except OSError:
        return 0
    try:
        root = parse(text)
    except KsonError:
        print("Failed to parse")
        return 0
    print(format_node(root))
    if len(args) > 1:
        node: Node | None = root
        for step in args[1:]:
            if node is None:
                break
            if node.type is NodeType.BRACKET:
                node = node.by_index(_atoi(step))
            elif node.type is NodeType.BRACE:
                node = node.by_key(step)
            else:
                node = None
        if node is None:
            print("Failed to find the slot")
        elif node.is_internal():
            print("Reached an internal node")
        else:
            print(f"Value: {node.value}")
    return 0