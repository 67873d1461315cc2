# -*- coding: utf-8 -*-
"""
调用树聚合

对一路带权重的事件流 (采样或某个内存视图) 计算每个调用节点的
self/total 次数与权重，并提供调用树读取模型。
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging

import numpy as np

from .call_node_builder import (
    get_call_node_path,
    get_sample_index_to_call_node_index,
    invert_call_node_info,
)
from .models import (
    Category,
    CallNodeInfo,
    ROOT_PREFIX,
    SamplesTable,
    SummaryStrategy,
    Thread,
    WeightedTable,
)

logger = logging.getLogger(__name__)


@dataclass
class CallTreeCountsAndTimings:
    """调用树聚合结果，数组按 call_node_info 中的调用节点索引"""
    call_node_info: CallNodeInfo
    call_node_self: np.ndarray
    call_node_self_count: np.ndarray
    call_node_total_summary: np.ndarray
    call_node_total_count: np.ndarray
    call_node_child_count: np.ndarray
    root_total_summary: float
    root_count: int
    inverted: bool = False


def get_row_weights(samples: WeightedTable, interval: float) -> np.ndarray:
    """
    计算每一行的权重

    timing 采样没有权重列时每个样本计为一个采样间隔；权重类型为 samples
    时权重乘以采样间隔；tracing-ms 和 bytes 原样使用。
    """
    weight = samples.weight
    if weight is None:
        return np.full(samples.length, float(interval), dtype=np.float64)
    weights = np.asarray(weight, dtype=np.float64)
    if isinstance(samples, SamplesTable) and samples.weight_type == 'samples':
        weights = weights * interval
    return weights


def compute_call_tree_counts_and_timings(samples: WeightedTable, call_node_info: CallNodeInfo,
                                         interval: float,
                                         invert_callstack: bool) -> CallTreeCountsAndTimings:
    """
    计算调用树的次数与权重

    Args:
        samples: 带权重的事件流
        call_node_info: 调用节点信息
        interval: 采样间隔 (ms)
        invert_callstack: 是否反转调用栈 (叶函数作为根)

    Returns:
        CallTreeCountsAndTimings: 聚合结果
    """
    if invert_callstack:
        call_node_info = invert_call_node_info(call_node_info)

    call_node_table = call_node_info.call_node_table
    length = call_node_table.length
    sample_call_nodes = get_sample_index_to_call_node_index(
        samples.stack, call_node_info.stack_index_to_call_node_index
    )
    row_weights = get_row_weights(samples, interval)

    call_node_self = np.zeros(length, dtype=np.float64)
    call_node_self_count = np.zeros(length, dtype=np.int64)
    for row_index, call_node_index in enumerate(sample_call_nodes):
        # 无法映射到调用节点的行被忽略
        if call_node_index is None:
            continue
        call_node_self[call_node_index] += row_weights[row_index]
        call_node_self_count[call_node_index] += 1

    call_node_total_summary = call_node_self.copy()
    call_node_total_count = call_node_self_count.copy()
    call_node_child_count = np.zeros(length, dtype=np.int64)
    prefix = call_node_table.prefix
    root_total_summary = 0.0
    root_count = 0

    # 逆序遍历，子节点总在父节点之前被处理完
    for call_node_index in range(length - 1, -1, -1):
        has_children = call_node_child_count[call_node_index] != 0
        has_total = (call_node_total_count[call_node_index] != 0
                     or call_node_total_summary[call_node_index] != 0)
        if not has_children and not has_total:
            continue
        parent = prefix[call_node_index]
        if parent == ROOT_PREFIX:
            root_total_summary += call_node_total_summary[call_node_index]
            root_count += 1
        else:
            call_node_total_summary[parent] += call_node_total_summary[call_node_index]
            call_node_total_count[parent] += call_node_total_count[call_node_index]
            call_node_child_count[parent] += 1

    return CallTreeCountsAndTimings(
        call_node_info=call_node_info,
        call_node_self=call_node_self,
        call_node_self_count=call_node_self_count,
        call_node_total_summary=call_node_total_summary,
        call_node_total_count=call_node_total_count,
        call_node_child_count=call_node_child_count,
        root_total_summary=float(root_total_summary),
        root_count=root_count,
        inverted=invert_callstack,
    )


@dataclass
class CallNodeData:
    """单个调用节点的数值数据"""
    func_name: str
    total: float
    total_relative: float
    self_time: float
    self_relative: float
    total_count: int
    self_count: int


def _format_bytes(value: float) -> str:
    magnitude = abs(value)
    for unit, size in (('GB', 1024 ** 3), ('MB', 1024 ** 2), ('KB', 1024)):
        if magnitude >= size:
            return f"{value / size:.1f}{unit}"
    return f"{value:.0f}B"


def _format_milliseconds(value: float) -> str:
    return f"{value:.1f}ms"


class CallTree:
    """
    调用树读取模型

    子节点按 total 从大到小排序，total 为 0 的节点不展示。
    """

    def __init__(self, thread: Thread, categories: Sequence[Category],
                 implementation_filter: str,
                 counts_and_timings: CallTreeCountsAndTimings,
                 strategy: SummaryStrategy):
        self._thread = thread
        # 反转时数组索引指向反转后的调用节点表
        self._call_node_info = counts_and_timings.call_node_info
        self._categories = categories
        self.implementation_filter = implementation_filter
        self._counts = counts_and_timings
        self.strategy = strategy
        self._children_cache: Dict[int, List[int]] = {}

        self._all_children: Dict[int, List[int]] = {ROOT_PREFIX: []}
        for call_node_index, parent in enumerate(self._call_node_info.call_node_table.prefix):
            self._all_children.setdefault(parent, []).append(call_node_index)

    @property
    def call_node_info(self) -> CallNodeInfo:
        return self._call_node_info

    @property
    def inverted(self) -> bool:
        return self._counts.inverted

    @property
    def root_total(self) -> float:
        return self._counts.root_total_summary

    def _sorted_visible(self, call_nodes: List[int]) -> List[int]:
        totals = self._counts.call_node_total_summary
        counts = self._counts.call_node_total_count
        visible = [index for index in call_nodes if totals[index] != 0 or counts[index] != 0]
        # 按 total 绝对值降序，释放视图的权重为负
        visible.sort(key=lambda index: (-abs(totals[index]), index))
        return visible

    def get_roots(self) -> List[int]:
        return self.get_children(ROOT_PREFIX)

    def get_children(self, call_node_index: int) -> List[int]:
        cached = self._children_cache.get(call_node_index)
        if cached is not None:
            return cached
        children = self._sorted_visible(self._all_children.get(call_node_index, []))
        self._children_cache[call_node_index] = children
        return children

    def has_children(self, call_node_index: int) -> bool:
        return len(self.get_children(call_node_index)) > 0

    def get_depth(self, call_node_index: int) -> int:
        return self._call_node_info.call_node_table.depth[call_node_index]

    def get_parent(self, call_node_index: int) -> int:
        return self._call_node_info.call_node_table.prefix[call_node_index]

    def get_call_node_path(self, call_node_index: int):
        return get_call_node_path(call_node_index, self._call_node_info.call_node_table)

    def get_node_data(self, call_node_index: int) -> CallNodeData:
        func = self._call_node_info.call_node_table.func[call_node_index]
        total = float(self._counts.call_node_total_summary[call_node_index])
        self_time = float(self._counts.call_node_self[call_node_index])
        root_total = abs(self._counts.root_total_summary)
        return CallNodeData(
            func_name=self._thread.func_table.name[func],
            total=total,
            total_relative=total / root_total if root_total else 0.0,
            self_time=self_time,
            self_relative=self_time / root_total if root_total else 0.0,
            total_count=int(self._counts.call_node_total_count[call_node_index]),
            self_count=int(self._counts.call_node_self_count[call_node_index]),
        )

    def _format_weight(self, value: float) -> str:
        if self.strategy == SummaryStrategy.TIMING:
            if self._thread.samples.weight_type == 'bytes':
                return _format_bytes(value)
            return _format_milliseconds(value)
        return _format_bytes(value)

    def get_display_data(self, call_node_index: int) -> Dict[str, Any]:
        """获取用于展示的格式化数据"""
        data = self.get_node_data(call_node_index)
        table = self._call_node_info.call_node_table
        func = table.func[call_node_index]
        category_index = table.category[call_node_index]
        if 0 <= category_index < len(self._categories):
            category_name = self._categories[category_index].name
        else:
            category_name = 'Unknown'
        resources = self._thread.func_table.resource
        return {
            'name': data.func_name,
            'total': self._format_weight(data.total),
            'self': self._format_weight(data.self_time) if data.self_time else '-',
            'total_percent': f"{data.total_relative * 100:.1f}%",
            'total_count': data.total_count,
            'self_count': data.self_count,
            'category_name': category_name,
            'lib': resources[func] if func < len(resources) else '',
            'implementation': self.implementation_filter,
            'depth': table.depth[call_node_index],
        }

    def iter_rows(self, max_depth: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        """按展示顺序 (深度优先) 输出每个可见节点的数据，用于导出"""
        stack = list(reversed(self.get_roots()))
        while stack:
            call_node_index = stack.pop()
            depth = self.get_depth(call_node_index)
            data = self.get_node_data(call_node_index)
            display = self.get_display_data(call_node_index)
            yield {
                'call_node': call_node_index,
                'depth': depth,
                'name': data.func_name,
                'total': data.total,
                'self': data.self_time,
                'total_count': data.total_count,
                'self_count': data.self_count,
                'total_percent': data.total_relative * 100,
                'category': display['category_name'],
                'lib': display['lib'],
            }
            if max_depth is None or depth < max_depth:
                stack.extend(reversed(self.get_children(call_node_index)))


def get_call_tree(thread: Thread, categories: Sequence[Category], implementation_filter: str,
                  counts_and_timings: CallTreeCountsAndTimings,
                  strategy: SummaryStrategy) -> CallTree:
    """构建调用树读取模型"""
    return CallTree(thread, categories, implementation_filter, counts_and_timings, strategy)
