from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass
class _Node(Generic[T]):
    data: T
    parent: int | None
    children: List[int] = field(default_factory=list)


class SearchTree(Generic[T]):
    """Rooted tree stored as an arena of nodes addressed by integer ids.

    The root is always id 0. Removing a child releases its whole subtree;
    released ids are never handed out again, so a stale id raises KeyError
    instead of silently aliasing a newer node.
    """

    def __init__(self, root_data: T) -> None:
        self._nodes: List[Optional[_Node[T]]] = [_Node(root_data, None)]
        self._alive = 1

    # -- lookup ---------------------------------------------------------
    def _node(self, node: int) -> _Node[T]:
        n = self._nodes[node] if 0 <= node < len(self._nodes) else None
        if n is None:
            raise KeyError(f"node {node} is not in the tree")
        return n

    @property
    def root(self) -> int:
        return 0

    def __len__(self) -> int:
        return self._alive

    def __contains__(self, node: object) -> bool:
        return isinstance(node, int) and 0 <= node < len(self._nodes) and self._nodes[node] is not None

    def is_root(self, node: int) -> bool:
        return self._node(node).parent is None

    def is_leaf(self, node: int) -> bool:
        return not self._node(node).children

    def parent(self, node: int) -> int | None:
        return self._node(node).parent

    def children(self, node: int) -> Tuple[int, ...]:
        return tuple(self._node(node).children)

    def child_count(self, node: int) -> int:
        return len(self._node(node).children)

    def child(self, node: int, index: int) -> int:
        kids = self._node(node).children
        if not 0 <= index < len(kids):
            raise IndexError(f"child index {index} out of range for node {node}")
        return kids[index]

    def data(self, node: int) -> T:
        return self._node(node).data

    def set_data(self, node: int, value: T) -> None:
        self._node(node).data = value

    def find_child_index(self, parent: int, child: int) -> int | None:
        """Position of ``child`` among ``parent``'s children, or None."""
        for i, c in enumerate(self._node(parent).children):
            if c == child:
                return i
        return None

    # -- mutation -------------------------------------------------------
    def add_child(self, parent: int, data: T) -> int:
        p = self._node(parent)
        nid = len(self._nodes)
        self._nodes.append(_Node(data, parent))
        p.children.append(nid)
        self._alive += 1
        return nid

    def insert_child(self, parent: int, index: int, data: T) -> int:
        """Attach a child at ``index`` (0..child_count) shifting later siblings."""
        p = self._node(parent)
        if not 0 <= index <= len(p.children):
            raise IndexError(f"insert index {index} out of range for node {parent}")
        nid = len(self._nodes)
        self._nodes.append(_Node(data, parent))
        p.children.insert(index, nid)
        self._alive += 1
        return nid

    def _release(self, node: int) -> None:
        # post-order: children first
        stack = [(node, False)]
        while stack:
            nid, expanded = stack.pop()
            if expanded:
                self._nodes[nid] = None
                self._alive -= 1
                continue
            stack.append((nid, True))
            for c in self._node(nid).children:
                stack.append((c, False))

    def remove_child_unordered(self, parent: int, index: int) -> None:
        """Swap the child with the last one and pop it. O(1); sibling order may change."""
        kids = self._node(parent).children
        if not 0 <= index < len(kids):
            raise IndexError(f"child index {index} out of range for node {parent}")
        kids[index], kids[-1] = kids[-1], kids[index]
        self._release(kids.pop())

    def remove_child_ordered(self, parent: int, index: int) -> None:
        """Remove the child at ``index`` keeping remaining siblings in order."""
        kids = self._node(parent).children
        if not 0 <= index < len(kids):
            raise IndexError(f"child index {index} out of range for node {parent}")
        self._release(kids.pop(index))

    def remove_child(self, parent: int, child: int) -> None:
        idx = self.find_child_index(parent, child)
        if idx is None:
            raise KeyError(f"node {child} is not a child of node {parent}")
        self.remove_child_unordered(parent, idx)

    def remove_child_ordered_ref(self, parent: int, child: int) -> None:
        idx = self.find_child_index(parent, child)
        if idx is None:
            raise KeyError(f"node {child} is not a child of node {parent}")
        self.remove_child_ordered(parent, idx)

    # -- traversal ------------------------------------------------------
    def walk(self, node: int | None = None) -> Iterator[int]:
        """Depth-first pre-order over the subtree rooted at ``node``."""
        stack = [self.root if node is None else node]
        self._node(stack[0])
        while stack:
            nid = stack.pop()
            yield nid
            stack.extend(reversed(self._node(nid).children))

    def edges(self) -> Iterator[Tuple[int, int]]:
        """(parent, child) pairs in depth-first pre-order of the child."""
        for nid in self.walk():
            p = self._node(nid).parent
            if p is not None:
                yield p, nid

    def ancestors(self, node: int) -> List[int]:
        """``node`` followed by each parent up to (and including) the root."""
        out = [node]
        p = self._node(node).parent
        while p is not None:
            out.append(p)
            p = self._node(p).parent
        return out

    # -- copying --------------------------------------------------------
    def copy(self, node: int | None = None) -> "SearchTree[T]":
        """Copy the subtree at ``node`` into a new, independent tree with fresh ids.

        Node data is deep-copied. The copied root never keeps a parent, even
        if ``node`` had one: copying a branch detaches it from its ancestry.
        """
        return self._copy(node, copy.deepcopy)

    def _copy(self, node: int | None, clone: Callable[[T], T]) -> "SearchTree[T]":
        src = self.root if node is None else node
        out: SearchTree[T] = SearchTree(clone(self._node(src).data))
        stack = [(src, out.root)]
        while stack:
            old, new = stack.pop()
            for c in self._node(old).children:
                nc = out.add_child(new, clone(self._node(c).data))
                stack.append((c, nc))
        return out

    def __copy__(self) -> "SearchTree[T]":
        """Same shape with fresh ids; node data is shared with this tree."""
        return self._copy(None, lambda d: d)

    def __deepcopy__(self, memo: dict) -> "SearchTree[T]":
        return self._copy(None, lambda d: copy.deepcopy(d, memo))
