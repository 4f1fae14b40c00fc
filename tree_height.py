from collections import deque
from typing import Iterable, List, Optional

from shared_utils import CyclicTreeError, TreeDepthExceeded


class Node:
    def __init__(self, data, left: Optional["Node"] = None, right: Optional["Node"] = None):
        self.data = data
        self.left = left
        self.right = right

    def __repr__(self):
        return f"Node({self.data!r})"


def height(node: Optional[Node], depth: int = 0) -> int:
    """
    Compute the height of the binary tree in edges.
    An empty tree is -1, a single node is 0.
    """
    if node is None:
        return depth - 1  # the absent child one level below a leaf
    left_height = height(node.left, depth + 1)
    right_height = height(node.right, depth + 1)
    return max(left_height, right_height)


def height_iterative(node: Optional[Node], depth: int = 0) -> int:
    """Same result as height() using an explicit stack, safe for very deep trees."""
    if node is None:
        return depth - 1

    deepest = 0
    stack = deque([(node, 0)])  # (node, edges from root)
    while stack:
        current, edges = stack.pop()
        if edges > deepest:
            deepest = edges
        if current.left is not None:
            stack.append((current.left, edges + 1))
        if current.right is not None:
            stack.append((current.right, edges + 1))

    return deepest + depth


def checked_height(node: Optional[Node], max_depth: Optional[int] = None,
                   detect_cycles: bool = True) -> int:
    """
    Iterative height with guards against malformed input.

    Raises CyclicTreeError if a node is reachable twice and TreeDepthExceeded
    if a path longer than max_depth edges is found. With detect_cycles=False
    and no max_depth a cyclic input never terminates.
    """
    if node is None:
        return -1

    seen = set()
    deepest = 0
    stack = deque([(node, 0)])
    while stack:
        current, edges = stack.pop()

        if detect_cycles:
            if id(current) in seen:
                raise CyclicTreeError(f"Node {current!r} reached twice at depth {edges}")
            seen.add(id(current))

        if max_depth is not None and edges > max_depth:
            raise TreeDepthExceeded(f"Tree deeper than max_depth={max_depth}")

        deepest = max(deepest, edges)
        for child in (current.left, current.right):
            if child is not None:
                stack.append((child, edges + 1))

    return deepest


def build_tree(values: Iterable) -> Optional[Node]:
    """Build a tree from level-order values, None marking an absent child."""
    values = list(values)
    if not values or values[0] is None:
        return None

    root = Node(values[0])
    q = deque([root])
    i = 1
    while q and i < len(values):
        node = q.popleft()

        if i < len(values) and values[i] is not None:
            node.left = Node(values[i])
            q.append(node.left)
        i += 1

        if i < len(values) and values[i] is not None:
            node.right = Node(values[i])
            q.append(node.right)
        i += 1

    return root


def inorder(node: Optional[Node]) -> List:
    """In-order traversal to visualize the tree."""
    result = []
    stack = []
    current = node
    while stack or current is not None:
        while current is not None:
            stack.append(current)
            current = current.left
        current = stack.pop()
        result.append(current.data)
        current = current.right
    return result

