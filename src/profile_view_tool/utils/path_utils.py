"""
调用节点路径工具模块
"""

from typing import Iterable, Iterator, List, Optional, Sequence

from ..models import CallNodePath, CallNodeTable, ROOT_PREFIX


class PathSet:
    """
    按插入顺序保存的路径集合

    add/remove 返回新的集合而不修改自身，保证上游引用比较的缓存语义。
    """

    def __init__(self, paths: Iterable[Sequence[int]] = ()):
        self._paths = {}
        for path in paths:
            path = tuple(path)
            self._paths[path] = None

    def __contains__(self, path) -> bool:
        return tuple(path) in self._paths

    def __iter__(self) -> Iterator[CallNodePath]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self):
        return f"PathSet({list(self._paths)})"

    def add(self, path: Sequence[int]) -> 'PathSet':
        if tuple(path) in self._paths:
            return self
        return PathSet(list(self._paths) + [tuple(path)])

    def remove(self, path: Sequence[int]) -> 'PathSet':
        path = tuple(path)
        if path not in self._paths:
            return self
        return PathSet(p for p in self._paths if p != path)


def get_call_node_index_from_path(call_node_path: Sequence[int],
                                  call_node_table: CallNodeTable) -> Optional[int]:
    """
    从虚拟根开始，按函数逐层向下查找调用节点

    Args:
        call_node_path: 函数索引路径
        call_node_table: 调用节点表

    Returns:
        Optional[int]: 调用节点索引，路径为空或任意一步找不到时返回 None
    """
    if not call_node_path:
        return None

    call_node_index = ROOT_PREFIX
    for func in call_node_path:
        child = call_node_table.get_child(call_node_index, func)
        if child is None:
            return None
        call_node_index = child
    return call_node_index


def get_call_node_indices_from_paths(call_node_paths: Iterable[Sequence[int]],
                                     call_node_table: CallNodeTable) -> List[Optional[int]]:
    """批量查找，保持输入顺序，每一项独立返回 None"""
    return [get_call_node_index_from_path(path, call_node_table) for path in call_node_paths]
