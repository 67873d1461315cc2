"""
调用节点表构建算法

按栈表顺序遍历原始栈（父栈总在子栈之前），以 (父调用节点, 函数) 为键
折叠成调用节点树。时间复杂度: O(栈数量)，字典查找均摊 O(1)。
"""

from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .models import (
    CallNodeInfo,
    CallNodePath,
    CallNodeTable,
    FrameTable,
    FuncTable,
    ROOT_PREFIX,
    StackTable,
    Thread,
)

logger = logging.getLogger(__name__)


class _CallNodeTableBuilder:
    """逐个分配调用节点，(prefix, func) 已存在时复用"""

    def __init__(self):
        self.func: List[int] = []
        self.category: List[int] = []
        self.depth: List[int] = []
        self.prefix: List[int] = []
        self.child_lookup: Dict[Tuple[int, int], int] = {}

    def get_or_create(self, prefix: int, func: int, category: int) -> int:
        key = (prefix, func)
        call_node_index = self.child_lookup.get(key)
        if call_node_index is not None:
            # 分类只是展示信息，首次出现的分类生效，不会因分类不同而拆分节点
            return call_node_index

        call_node_index = len(self.func)
        self.func.append(func)
        self.category.append(category)
        self.depth.append(0 if prefix == ROOT_PREFIX else self.depth[prefix] + 1)
        self.prefix.append(prefix)
        self.child_lookup[key] = call_node_index
        return call_node_index

    def build(self) -> CallNodeTable:
        return CallNodeTable(
            func=self.func,
            category=self.category,
            depth=self.depth,
            prefix=self.prefix,
            child_lookup=self.child_lookup,
        )


def compute_call_node_info(stack_table: StackTable, frame_table: FrameTable,
                           func_table: FuncTable, default_category: int) -> CallNodeInfo:
    """
    从栈表构建调用节点表

    Args:
        stack_table: 栈表
        frame_table: 帧表
        func_table: 函数表
        default_category: 帧没有分类时使用的默认分类

    Returns:
        CallNodeInfo: 调用节点表与栈索引到调用节点索引的映射

    Raises:
        ValueError: 栈的父栈没有排在它之前
    """
    builder = _CallNodeTableBuilder()
    stack_index_to_call_node_index: List[Optional[int]] = [None] * stack_table.length
    frame_categories = frame_table.category

    for stack_index in range(stack_table.length):
        prefix_stack = stack_table.prefix[stack_index]
        frame_index = stack_table.frame[stack_index]

        if prefix_stack is None:
            prefix_call_node = ROOT_PREFIX
        else:
            if prefix_stack >= stack_index:
                raise ValueError(
                    f"栈表顺序错误: 栈 {stack_index} 的父栈 {prefix_stack} 没有排在它之前"
                )
            prefix_call_node = stack_index_to_call_node_index[prefix_stack]
            if prefix_call_node is None:
                # 父栈没有调用节点，子栈同样没有
                continue

        if frame_index is None:
            continue

        func = frame_table.func[frame_index]
        if func < 0 or func >= func_table.length:
            raise ValueError(f"帧 {frame_index} 引用了不存在的函数 {func}")
        category = frame_categories[frame_index] if frame_index < len(frame_categories) else None
        if category is None:
            category = default_category

        stack_index_to_call_node_index[stack_index] = builder.get_or_create(
            prefix_call_node, func, category
        )

    call_node_table = builder.build()
    logger.debug(f"调用节点表构建完成: {stack_table.length} 个栈 -> {call_node_table.length} 个调用节点")
    return CallNodeInfo(call_node_table, stack_index_to_call_node_index)


def get_call_node_path(call_node_index: int, call_node_table: CallNodeTable) -> CallNodePath:
    """获取从根到当前调用节点的函数路径"""
    path = []
    current = call_node_index
    while current != ROOT_PREFIX:
        path.append(call_node_table.func[current])
        current = call_node_table.prefix[current]
    return tuple(reversed(path))


def get_sample_index_to_call_node_index(sample_stacks: Sequence[Optional[int]],
                                        stack_index_to_call_node_index: Sequence[Optional[int]]
                                        ) -> List[Optional[int]]:
    """将每个样本的栈索引映射为调用节点索引，没有栈的样本映射为 None"""
    return [
        None if stack_index is None else stack_index_to_call_node_index[stack_index]
        for stack_index in sample_stacks
    ]


def compute_call_node_max_depth(thread: Thread, call_node_info: CallNodeInfo) -> int:
    """
    计算线程样本所落在的调用节点的最大深度

    Returns:
        int: 最大深度，没有样本时为 0
    """
    depth = call_node_info.call_node_table.depth
    stack_to_call_node = call_node_info.stack_index_to_call_node_index
    max_depth = 0
    for stack_index in thread.samples.stack:
        if stack_index is None:
            continue
        call_node_index = stack_to_call_node[stack_index]
        if call_node_index is None:
            continue
        if depth[call_node_index] > max_depth:
            max_depth = depth[call_node_index]
    return max_depth


def invert_call_node_info(call_node_info: CallNodeInfo) -> CallNodeInfo:
    """
    构建叶到根反转后的调用节点表

    每个原始调用节点的函数路径被反转 (叶函数成为新的根)，原始栈映射到
    反转路径末端的节点，因此在反转表上做普通聚合即可得到反转调用树。
    """
    table = call_node_info.call_node_table
    builder = _CallNodeTableBuilder()
    non_inverted_to_inverted: List[int] = [ROOT_PREFIX] * table.length

    for call_node_index in range(table.length):
        inverted = ROOT_PREFIX
        current = call_node_index
        while current != ROOT_PREFIX:
            inverted = builder.get_or_create(inverted, table.func[current], table.category[current])
            current = table.prefix[current]
        non_inverted_to_inverted[call_node_index] = inverted

    stack_index_to_call_node_index = [
        None if call_node_index is None else non_inverted_to_inverted[call_node_index]
        for call_node_index in call_node_info.stack_index_to_call_node_index
    ]
    inverted_table = builder.build()
    logger.debug(f"反转调用节点表构建完成: {table.length} -> {inverted_table.length} 个调用节点")
    return CallNodeInfo(inverted_table, stack_index_to_call_node_index)
