from __future__ import annotations

from typing import List, Optional

from error_handling import StaleContextError
from models import FrameHandle, FrameTreeNode
from utils.context_guard import BrowsingContext, ContextGuard


def _walk(context: BrowsingContext, parent: FrameHandle, depth: int, max_depth: int) -> List[FrameTreeNode]:
    try:
        context.enter_handle(parent)
        children = context.child_frames()
    except StaleContextError:
        return []

    nodes: List[FrameTreeNode] = []
    for descriptor in children:
        node = FrameTreeNode(descriptor=descriptor, depth=depth)
        if depth < max_depth:
            handle = parent.child(descriptor)
            try:
                context.enter_handle(handle)
            except StaleContextError as e:
                node.error = str(e)
            else:
                node.children = _walk(context, handle, depth + 1, max_depth)
        nodes.append(node)
    return nodes


def capture_frame_tree(context: BrowsingContext, max_depth: int = 3) -> List[FrameTreeNode]:
    """
    Snapshot every iframe down to max_depth, visible or not.

    Used when no widget layout matched: the dump shows which titles and srcs
    the page actually carries, which is what you need to update selectors.
    """
    with ContextGuard(context):
        return _walk(context, FrameHandle(()), 1, max_depth)


def render_frame_tree(nodes: List[FrameTreeNode], lines: Optional[List[str]] = None) -> List[str]:
    """Flatten a frame tree into indented, human-readable lines."""
    if lines is None:
        lines = []
    for node in nodes:
        d = node.descriptor
        indent = "  " * (node.depth - 1)
        flags = "" if d.visible else " [hidden]"
        line = f"{indent}[{d.index}] title='{d.title}' name='{d.name}' src='{d.src[:80]}'{flags}"
        if node.error:
            line += f" !! {node.error}"
        lines.append(line)
        render_frame_tree(node.children, lines)
    return lines
