"""
工具模块
"""

from .checks import ensure_exists, assert_exhaustive_check, coerce_variant
from .path_utils import (
    PathSet,
    get_call_node_index_from_path,
    get_call_node_indices_from_paths,
)

__all__ = [
    'ensure_exists',
    'assert_exhaustive_check',
    'coerce_variant',
    'PathSet',
    'get_call_node_index_from_path',
    'get_call_node_indices_from_paths',
]
