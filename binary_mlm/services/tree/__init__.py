"""
Tree snapshot services.

Cached, annotated read views of the binary tree.
"""

from binary_mlm.services.tree.cache import (
    MemoryTreeCache,
    RedisTreeCache,
    TreeCache,
    build_tree_cache,
    get_tree_cache,
    tree_cache_key,
)
from binary_mlm.services.tree.schemas import ClientTreeResponse, TreeNode
from binary_mlm.services.tree.snapshot import TreeSnapshotService


__all__ = [
    "ClientTreeResponse",
    "MemoryTreeCache",
    "RedisTreeCache",
    "TreeCache",
    "TreeNode",
    "TreeSnapshotService",
    "build_tree_cache",
    "get_tree_cache",
    "tree_cache_key",
]
