"""
Augmented AVL interval tree indexing stored events by [start, end].

Nodes are ordered by start; every node also records the largest end in its
subtree so searches can skip subtrees that finish too early. Equal starts
are allowed and may sit on either side of each other after rotations.
"""

from datetime import datetime
from typing import Any, Callable, Iterator, Optional


class IntervalHandle:
    """Opaque handle with public accessors for start, end, and data."""
    __slots__ = ['start', 'end', 'data', 'left', 'right', 'parent', 'max_end', 'height']

    def __init__(self, start: datetime, end: datetime, data: Any):
        self.start: datetime = start
        self.end: datetime = end
        self.data: Any = data
        self.left: Optional['IntervalHandle'] = None
        self.right: Optional['IntervalHandle'] = None
        self.parent: Optional['IntervalHandle'] = None
        self.max_end: datetime = end
        self.height: int = 1


class IntervalTree:
    def __init__(self):
        self.root: Optional[IntervalHandle] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[IntervalHandle]:
        """In-order walk (ascending start)."""
        stack = []
        node = self.root
        while stack or node:
            while node:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    # --- Internal Utilities ---

    def _get_height(self, node: Optional[IntervalHandle]) -> int:
        return node.height if node else 0

    def _update(self, node: Optional[IntervalHandle]):
        if not node:
            return
        node.height = 1 + max(self._get_height(node.left), self._get_height(node.right))
        m = node.end
        if node.left and node.left.max_end > m:
            m = node.left.max_end
        if node.right and node.right.max_end > m:
            m = node.right.max_end
        node.max_end = m

    def _replace_child(self, old: IntervalHandle, new: Optional[IntervalHandle]):
        parent = old.parent
        if new:
            new.parent = parent
        if not parent:
            self.root = new
        elif old is parent.left:
            parent.left = new
        else:
            parent.right = new

    def _rotate_left(self, x: IntervalHandle):
        y = x.right
        x.right = y.left
        if y.left:
            y.left.parent = x
        self._replace_child(x, y)
        y.left = x
        x.parent = y
        self._update(x)
        self._update(y)

    def _rotate_right(self, y: IntervalHandle):
        x = y.left
        y.left = x.right
        if x.right:
            x.right.parent = y
        self._replace_child(y, x)
        x.right = y
        y.parent = x
        self._update(y)
        self._update(x)

    def _rebalance(self, node: Optional[IntervalHandle]):
        while node:
            self._update(node)
            balance = self._get_height(node.left) - self._get_height(node.right)
            if balance > 1:
                if self._get_height(node.left.left) < self._get_height(node.left.right):
                    self._rotate_left(node.left)
                self._rotate_right(node)
            elif balance < -1:
                if self._get_height(node.right.right) < self._get_height(node.right.left):
                    self._rotate_right(node.right)
                self._rotate_left(node)
            node = node.parent

    # --- Public API ---

    def insert(self, start: datetime, end: datetime, data: Any) -> IntervalHandle:
        new_node = IntervalHandle(start, end, data)
        self._size += 1
        if not self.root:
            self.root = new_node
            return new_node

        curr = self.root
        parent = None
        while curr:
            parent = curr
            curr = curr.left if start < curr.start else curr.right

        new_node.parent = parent
        if start < parent.start:
            parent.left = new_node
        else:
            parent.right = new_node

        self._rebalance(new_node)
        return new_node

    def delete(self, handle: IntervalHandle) -> Optional[IntervalHandle]:
        """
        Remove the interval referenced by ``handle``.

        When the node has two children its in-order successor's payload is
        moved into ``handle`` and the successor node is unlinked instead.

        Returns:
            The handle that now carries a moved payload (callers holding a
            handle for that payload must switch to it), or None.
        """
        if not handle.left or not handle.right:
            z = handle
        else:
            z = handle.right
            while z.left:
                z = z.left

        child = z.left or z.right
        rebalance_point = z.parent
        self._replace_child(z, child)
        self._size -= 1

        if z is not handle:
            handle.start, handle.end, handle.data = z.start, z.end, z.data
            self._rebalance(rebalance_point)
            self._rebalance(handle)
            return handle
        self._rebalance(rebalance_point)
        return None

    # --- Search Methods ---

    def find_intersecting(self, start: datetime, end: datetime,
                          callback: Callable[[IntervalHandle], None], strict: bool = False):
        """
        Finds intervals that overlap [start, end].

        With ``strict`` the open intervals must overlap: intervals that
        only touch an endpoint are not reported.
        """
        def _search(node):
            if not node:
                return
            if strict:
                if node.max_end <= start:
                    return
                if node.left and node.left.max_end > start:
                    _search(node.left)
                if node.start < end and node.end > start:
                    callback(node)
                if node.start < end:
                    _search(node.right)
            else:
                if node.max_end < start:
                    return
                if node.left and node.left.max_end >= start:
                    _search(node.left)
                if node.start <= end and node.end >= start:
                    callback(node)
                if node.start <= end:
                    _search(node.right)
        _search(self.root)

    def find_contained(self, start: datetime, end: datetime,
                       callback: Callable[[IntervalHandle], None]):
        """Finds intervals lying inside the closed range [start, end]."""
        def _search(node):
            if not node or start > node.max_end:
                return
            if node.left and node.left.max_end >= start:
                _search(node.left)
            if node.start >= start and node.end <= end:
                callback(node)
            if node.start <= end:
                _search(node.right)
        _search(self.root)

    def find_overlapping(self, time: datetime, callback: Callable[[IntervalHandle], None]):
        """Finds intervals that cover a specific point in time."""
        def _search(node):
            if not node or time > node.max_end:
                return
            if node.left and node.left.max_end >= time:
                _search(node.left)
            if node.start <= time and node.end >= time:
                callback(node)
            if node.start <= time:
                _search(node.right)
        _search(self.root)

    # --- Debug Tool ---

    def verify_integrity(self):
        """Raises RuntimeError if AVL height, ordering or max_end is violated."""
        def _walk(node, low, high):
            if not node:
                return 0, None
            if (low is not None and node.start < low) or (high is not None and node.start > high):
                raise RuntimeError(f"Ordering Violation at {node.start}")

            left_h, left_max = _walk(node.left, low, node.start)
            right_h, right_max = _walk(node.right, node.start, high)

            if abs(left_h - right_h) > 1:
                raise RuntimeError(f"AVL Violation at {node.start}")

            expected_max = max(m for m in (node.end, left_max, right_max) if m is not None)
            if node.max_end != expected_max:
                raise RuntimeError(f"MaxEnd Violation at {node.start}")
            if node.height != 1 + max(left_h, right_h):
                raise RuntimeError(f"Height Violation at {node.start}")

            return 1 + max(left_h, right_h), expected_max

        _walk(self.root, None, None)
