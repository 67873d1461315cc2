"""
样本选中状态分类与树序比较
"""

from typing import Callable, List, Optional, Sequence, Tuple

from .models import CallNodeTable, ROOT_PREFIX, SelectedState


def compute_tree_order(call_node_table: CallNodeTable) -> Tuple[List[int], List[int]]:
    """
    计算调用节点的先序遍历序号和子树大小

    子节点按索引顺序访问，父节点总在子节点之前，所以结果是固定的。

    Returns:
        Tuple[List[int], List[int]]: (先序序号, 子树大小 (含自身))
    """
    length = call_node_table.length
    prefix = call_node_table.prefix

    children: List[List[int]] = [[] for _ in range(length)]
    roots = []
    for call_node_index in range(length):
        parent = prefix[call_node_index]
        if parent == ROOT_PREFIX:
            roots.append(call_node_index)
        else:
            children[parent].append(call_node_index)

    subtree_size = [1] * length
    for call_node_index in range(length - 1, -1, -1):
        parent = prefix[call_node_index]
        if parent != ROOT_PREFIX:
            subtree_size[parent] += subtree_size[call_node_index]

    rank = [0] * length
    next_rank = 0
    stack = list(reversed(roots))
    while stack:
        current = stack.pop()
        rank[current] = next_rank
        next_rank += 1
        stack.extend(reversed(children[current]))

    return rank, subtree_size


def get_samples_selected_states(call_node_table: CallNodeTable,
                                sample_call_nodes: Sequence[Optional[int]],
                                tab_filtered_call_nodes: Sequence[Optional[int]],
                                selected_call_node: Optional[int]) -> List[SelectedState]:
    """
    为每个样本计算相对于选中调用节点的状态

    Args:
        call_node_table: 调用节点表
        sample_call_nodes: 过滤后线程中每个样本的调用节点
        tab_filtered_call_nodes: tab 过滤线程中同一样本的调用节点
        selected_call_node: 选中的调用节点，None 表示没有选中

    Returns:
        List[SelectedState]: 每个样本的状态
    """
    if len(tab_filtered_call_nodes) != len(sample_call_nodes):
        raise ValueError(
            f"tab 过滤线程的样本数 {len(tab_filtered_call_nodes)} 与过滤线程的样本数 "
            f"{len(sample_call_nodes)} 不一致"
        )

    if selected_call_node is None:
        selected_start = selected_end = None
        rank = None
    else:
        rank, subtree_size = compute_tree_order(call_node_table)
        selected_start = rank[selected_call_node]
        selected_end = selected_start + subtree_size[selected_call_node]

    result = []
    for sample_index, call_node_index in enumerate(sample_call_nodes):
        if call_node_index is None:
            result.append(SelectedState.FILTERED_OUT_BY_TRANSFORM)
        elif tab_filtered_call_nodes[sample_index] is None:
            result.append(SelectedState.FILTERED_OUT_BY_TAB)
        elif rank is None:
            # 没有选中节点时所有样本统一为未选中
            result.append(SelectedState.UNSELECTED_ORDERED_BEFORE_SELECTED)
        else:
            sample_rank = rank[call_node_index]
            if selected_start <= sample_rank < selected_end:
                result.append(SelectedState.SELECTED)
            elif sample_rank < selected_start:
                result.append(SelectedState.UNSELECTED_ORDERED_BEFORE_SELECTED)
            else:
                result.append(SelectedState.UNSELECTED_ORDERED_AFTER_SELECTED)
    return result


def get_tree_order_comparator(call_node_table: CallNodeTable,
                              sample_call_nodes: Sequence[Optional[int]]
                              ) -> Callable[[int, int], int]:
    """
    返回按调用树先序比较两个样本索引的比较函数

    没有调用节点的样本排在最前。可以配合 functools.cmp_to_key 使用。
    """
    rank, _ = compute_tree_order(call_node_table)

    def tree_order_comparator(sample_a: int, sample_b: int) -> int:
        call_node_a = sample_call_nodes[sample_a]
        call_node_b = sample_call_nodes[sample_b]
        if call_node_a == call_node_b:
            return 0
        if call_node_a is None:
            return -1
        if call_node_b is None:
            return 1
        return -1 if rank[call_node_a] < rank[call_node_b] else 1

    return tree_order_comparator
