"""
Renders parsed box trees as indented text, for human consumption.

Every box gets a head line with its type code and size, followed by its display properties and its children, indented
one level deeper. Failures to produce the display properties of a box are shown in place of its properties and do not
affect the rendering of any other box.
"""

from textwrap import indent
from typing import List

from atmfjstc.lib.box_tree.errors import format_exception_head
from atmfjstc.lib.box_tree.nodes import BoxKind, BoxNode, BoxTree


INDENT = '    '


def render_box_tree(tree: BoxTree) -> str:
    lines = [f"{tree.source_name or '<data>'} ({tree.size} bytes)"]

    for box in tree.boxes:
        lines.append(indent(render_box(box), INDENT))

    return '\n'.join(lines)


def render_box(box: BoxNode) -> str:
    lines = [_render_head(box)]

    for line in _render_body(box):
        lines.append(indent(line, INDENT))

    for child in box.children:
        lines.append(indent(render_box(child), INDENT))

    return '\n'.join(lines)


def _render_head(box: BoxNode) -> str:
    head = f"[{box.type_code}] {box.size} bytes"

    if box.kind == BoxKind.CONTAINER:
        head += f", {len(box.children)} {'child' if len(box.children) == 1 else 'children'}"
    elif box.kind == BoxKind.UNKNOWN:
        head += " (unknown type)"

    return head


def _render_body(box: BoxNode) -> List[str]:
    if box.data_skipped:
        return [f"({box.payload_size} bytes of data skipped)"]
    if box.decode_error_head is not None:
        return [f"!! Decoding failed: {box.decode_error_head}"]

    try:
        props = box.display_properties()
    except Exception as e:
        return [f"!! Display failed: {format_exception_head(e)}"]

    return [_render_property(label, value) for label, value in props]


def _render_property(label: str, value: str) -> str:
    if '\n' not in value:
        return f"{label}: {value}"

    return f"{label}:\n{indent(value, INDENT)}"
