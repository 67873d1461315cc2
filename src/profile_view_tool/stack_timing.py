"""
栈深度时间图构建

按时间顺序扫描样本，在每个深度上把连续落在同一个调用节点的样本
合并成一个区间，同一深度内的区间按开始时间排序且互不重叠。
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .models import CallNodeInfo, SamplesTable


@dataclass
class StackTiming:
    """单个深度上的区间 [start, end)"""
    start: List[float] = field(default_factory=list)
    end: List[float] = field(default_factory=list)
    call_node: List[int] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.start)


def _pop_boxes(stack_timing_by_depth: List[StackTiming],
               open_call_nodes: List[Optional[int]], open_start_times: List[float],
               shared_depth: int, previous_depth: int, end_time: float):
    """关闭 shared_depth 以下、previous_depth 以内所有打开的区间"""
    for depth in range(shared_depth + 1, previous_depth + 1):
        call_node_index = open_call_nodes[depth]
        if call_node_index is None:
            continue
        timing = stack_timing_by_depth[depth]
        timing.start.append(open_start_times[depth])
        timing.end.append(end_time)
        timing.call_node.append(call_node_index)
        open_call_nodes[depth] = None


def get_stack_timing_by_depth(samples: SamplesTable, call_node_info: CallNodeInfo,
                              max_depth: int, interval: float) -> List[StackTiming]:
    """
    构建每个深度 (0..max_depth) 的区间列表

    Args:
        samples: 过滤后线程的采样表 (按时间排序)
        call_node_info: 调用节点信息
        max_depth: 最大调用节点深度
        interval: 采样间隔，最后一个样本的区间在 time + interval 处结束

    Returns:
        List[StackTiming]: 下标为深度
    """
    call_node_table = call_node_info.call_node_table
    depth_column = call_node_table.depth
    prefix = call_node_table.prefix
    stack_to_call_node = call_node_info.stack_index_to_call_node_index

    stack_timing_by_depth = [StackTiming() for _ in range(max_depth + 1)]
    open_call_nodes: List[Optional[int]] = [None] * (max_depth + 1)
    open_start_times: List[float] = [0.0] * (max_depth + 1)
    previous_depth = -1

    for sample_index, stack_index in enumerate(samples.stack):
        sample_time = samples.time[sample_index]
        call_node_index = None if stack_index is None else stack_to_call_node[stack_index]

        if call_node_index is None:
            # 被过滤掉的样本关闭所有区间
            _pop_boxes(stack_timing_by_depth, open_call_nodes, open_start_times,
                       -1, previous_depth, sample_time)
            previous_depth = -1
            continue

        depth = depth_column[call_node_index]
        if depth > max_depth:
            raise ValueError(f"调用节点 {call_node_index} 的深度 {depth} 超过最大深度 {max_depth}")

        # 找到与上一个样本共享的最深祖先
        current = call_node_index
        current_depth = depth
        while current_depth > previous_depth:
            current = prefix[current]
            current_depth -= 1
        while current_depth >= 0 and open_call_nodes[current_depth] != current:
            current = prefix[current]
            current_depth -= 1
        shared_depth = current_depth

        _pop_boxes(stack_timing_by_depth, open_call_nodes, open_start_times,
                   shared_depth, previous_depth, sample_time)

        current = call_node_index
        for open_depth in range(depth, shared_depth, -1):
            open_call_nodes[open_depth] = current
            open_start_times[open_depth] = sample_time
            current = prefix[current]
        previous_depth = depth

    if samples.length > 0:
        end_time = samples.time[-1] + interval
        _pop_boxes(stack_timing_by_depth, open_call_nodes, open_start_times,
                   -1, previous_depth, end_time)

    return stack_timing_by_depth

