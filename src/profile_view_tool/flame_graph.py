"""
火焰图布局计算

每一层的区间以根节点总权重的比例表示，同一父节点下的子节点按函数名
升序排列 (同名时按函数索引、调用节点索引)，输入不变时布局完全稳定。
"""

from dataclasses import dataclass, field
from typing import Dict, List
import logging

from .call_tree import CallTreeCountsAndTimings
from .models import CallNodeInfo, ROOT_PREFIX, Thread

logger = logging.getLogger(__name__)


@dataclass
class FlameGraphRow:
    """火焰图单层数据，start/end 为 [0, 1] 内的比例"""
    start: List[float] = field(default_factory=list)
    end: List[float] = field(default_factory=list)
    self_relative: List[float] = field(default_factory=list)
    call_node: List[int] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.start)


def get_flame_graph_timing(thread: Thread, call_node_info: CallNodeInfo,
                           counts_and_timings: CallTreeCountsAndTimings) -> List[FlameGraphRow]:
    """
    计算火焰图每一层的布局

    Args:
        thread: 预览过滤后的线程，提供函数名
        call_node_info: 调用节点信息 (非反转)
        counts_and_timings: 非反转的调用树聚合结果

    Returns:
        List[FlameGraphRow]: 下标为深度
    """
    if counts_and_timings.inverted:
        raise ValueError("火焰图只支持非反转的调用树聚合结果")

    call_node_table = call_node_info.call_node_table
    totals = counts_and_timings.call_node_total_summary
    self_weights = counts_and_timings.call_node_self
    root_total = counts_and_timings.root_total_summary
    func_names = thread.func_table.name

    timing: List[FlameGraphRow] = []
    if root_total == 0:
        return timing

    children: Dict[int, List[int]] = {}
    for call_node_index, parent in enumerate(call_node_table.prefix):
        if totals[call_node_index] == 0:
            continue
        children.setdefault(parent, []).append(call_node_index)

    def sort_key(call_node_index: int):
        func = call_node_table.func[call_node_index]
        return (func_names[func], func, call_node_index)

    # (父调用节点, 子节点所在深度, 父节点起始比例)
    pending = [(ROOT_PREFIX, 0, 0.0)]
    while pending:
        parent, depth, start = pending.pop()
        siblings = children.get(parent)
        if not siblings:
            continue
        if len(timing) <= depth:
            timing.append(FlameGraphRow())
        row = timing[depth]
        for call_node_index in sorted(siblings, key=sort_key):
            width = float(totals[call_node_index] / root_total)
            row.start.append(start)
            row.end.append(start + width)
            row.self_relative.append(float(self_weights[call_node_index] / root_total))
            row.call_node.append(call_node_index)
            pending.append((call_node_index, depth + 1, start))
            start += width

    # 深度优先展开导致同一层内的区间不一定按起点有序，这里统一排序
    for row in timing:
        order = sorted(range(row.length), key=lambda i: row.start[i])
        row.start = [row.start[i] for i in order]
        row.end = [row.end[i] for i in order]
        row.self_relative = [row.self_relative[i] for i in order]
        row.call_node = [row.call_node[i] for i in order]

    logger.debug(f"火焰图布局完成: {len(timing)} 层")
    return timing
