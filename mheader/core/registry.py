# SPDX-License-Identifier: MIT
"""Ordered key/value tree written as a Malterlib header.

A Registry node has a key, a value and an ordered list of children.
Children are written in insertion order, so the order in which the
generator adds them is the order they appear in the header.

Two indices speed up the common lookups:
- by key (last write wins), used by set_child()
- by (key, value), used by add_unique_child() to fold repeated
  directory segments into one group

Example:
    root = Registry()
    target = root.add_child("%Target", "Exe_app")
    target.add_child("Target.Type", "ConsoleExecutable")
    print(root.to_text())
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

from mheader.core.escape import escape, make_tabs
from mheader.core.values import DynamicPath, Value

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import TextIO

# Structural keys
TARGET_KEY = "%Target"
GROUP_KEY = "%Group"
FILE_KEY = "%File"
DEPENDENCY_KEY = "%Dependency"
COMPILE_KEY = "Compile"


class Registry:
    """A node in the header tree.

    Handles returned by add_child() and friends are plain object
    references and stay valid while the node is part of the tree.

    Attributes:
        key: Node key.
        value: Node value (may be empty).
        children: Child nodes in output order.
        protected: Prevents prune_lone_children() from collapsing this group.
        raw_key: Write the key verbatim, without escaping.
        raw_value: Write the value verbatim, without escaping.
    """

    __slots__ = (
        "key",
        "value",
        "children",
        "protected",
        "raw_key",
        "raw_value",
        "_by_key",
        "_by_key_value",
    )

    def __init__(self, key: str = "", value: Value = "") -> None:
        self.key = key
        self.value = ""
        self.children: list[Registry] = []
        self.protected = False
        self.raw_key = False
        self.raw_value = False
        self._by_key: dict[str, Registry] = {}
        self._by_key_value: dict[tuple[str, str], Registry] = {}
        self.set_value(value)

    def set_value(self, value: Value, raw: bool = False) -> None:
        """Set the value; a DynamicPath is stored as raw expression text.

        Args:
            value: New value.
            raw: Write a string value verbatim, without escaping.
        """
        if isinstance(value, DynamicPath):
            self.value = value.render()
            self.raw_value = True
        else:
            self.value = value
            self.raw_value = raw

    @property
    def is_group(self) -> bool:
        return self.key == GROUP_KEY

    def add_child(
        self,
        key: str,
        value: Value = "",
        push_front: bool = False,
        raw: bool = False,
    ) -> Registry:
        """Create a new child and index it.

        Args:
            key: Child key.
            value: Child value.
            push_front: Insert before existing children instead of after.
            raw: Write a string value verbatim, without escaping.

        Returns:
            The new child.
        """
        child = Registry(key)
        child.set_value(value, raw)
        if push_front:
            self.children.insert(0, child)
        else:
            self.children.append(child)
        self._index(child)
        return child

    def set_child(self, key: str, value: Value, raw: bool = False) -> Registry:
        """Overwrite the value of the child with this key, or add one."""
        child = self._by_key.get(key)
        if child is None:
            return self.add_child(key, value, raw=raw)
        if self._by_key_value.get((child.key, child.value)) is child:
            del self._by_key_value[(child.key, child.value)]
        child.set_value(value, raw)
        self._by_key_value[(child.key, child.value)] = child
        return child

    def add_unique_child(self, key: str, value: Value, raw: bool = False) -> Registry:
        """Return the child with exactly this key and value, adding it if missing."""
        text = value.render() if isinstance(value, DynamicPath) else value
        child = self._by_key_value.get((key, text))
        if child is not None:
            return child
        return self.add_child(key, value, raw=raw)

    def find_child(self, key: str) -> Registry | None:
        """Return the most recently added child with this key."""
        return self._by_key.get(key)

    def find_children(self, key: str) -> list[Registry]:
        """Return all children with this key, in output order."""
        return [child for child in self.children if child.key == key]

    def __iter__(self) -> Iterator[Registry]:
        return iter(self.children)

    def _index(self, child: Registry) -> None:
        self._by_key[child.key] = child
        self._by_key_value[(child.key, child.value)] = child

    def _reindex(self) -> None:
        self._by_key = {}
        self._by_key_value = {}
        for child in self.children:
            self._index(child)

    # Pruning

    def _collapse_lone_groups(self) -> Registry:
        node = self
        while (
            node.is_group
            and not node.protected
            and len(node.children) == 1
            and node.children[0].is_group
        ):
            node = node.children[0]
        return node

    def prune_lone_children(self) -> None:
        """Collapse chains of single-child groups below this node.

        A group whose only child is another group is replaced by that
        child, repeatedly, so a chain of directory segments without
        branches becomes the deepest group. Protected groups are never
        replaced. Only %Group children are considered; files, targets and
        compile blocks are left alone.
        """
        replaced = False
        for index, child in enumerate(self.children):
            if not child.is_group:
                continue
            collapsed = child._collapse_lone_groups()
            if collapsed is not child:
                self.children[index] = collapsed
                replaced = True
            collapsed.prune_lone_children()
        if replaced:
            self._reindex()

    # Output

    def write(self, stream: TextIO) -> None:
        """Write all children of this node to stream.

        The node itself is the (unnamed) document root and is not written.
        """
        for child in self.children:
            child._write_recursive(stream, "")

    def to_text(self) -> str:
        """Return the header text for all children of this node."""
        buffer = io.StringIO()
        self.write(buffer)
        return buffer.getvalue()

    def _write_recursive(self, stream: TextIO, indent: str) -> None:
        key = self.key if self.raw_key else escape(self.key)
        if self.value or not self.children:
            line = f"{indent}{key} "
            stream.write(line)
            if self.raw_value:
                stream.write(self.value)
            else:
                stream.write(
                    escape(
                        self.value,
                        force=True,
                        escape_newlines=True,
                        prefix=make_tabs(line),
                    )
                )
        else:
            stream.write(indent + key)
        stream.write("\n")

        if not self.children:
            return

        stream.write(indent + "{\n")
        child_indent = indent + "\t"
        for child in self.children:
            child._write_recursive(stream, child_indent)
        stream.write(indent + "}\n")

    def __repr__(self) -> str:
        return f"Registry({self.key!r}, {self.value!r}, children={len(self.children)})"
