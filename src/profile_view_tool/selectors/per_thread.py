# -*- coding: utf-8 -*-
"""
单个线程与栈、样本相关的派生选择器

每个线程一张派生计算图，图中节点的依赖关系:
    过滤线程 -> 调用节点信息 -> {路径解析, 样本选中状态, 调用树聚合}
    汇总策略 + 内存视图转换 -> 调用树聚合 -> {调用树, 火焰图}
"""

from typing import List, Optional
import logging

from ..call_node_builder import (
    compute_call_node_info,
    compute_call_node_max_depth,
    get_sample_index_to_call_node_index,
)
from ..call_tree import compute_call_tree_counts_and_timings, get_call_tree
from ..derivation import DerivationGraph, create_selector
from ..flame_graph import get_flame_graph_timing
from ..models import CallNodeInfo, StartEndRange, Thread
from ..selection import get_samples_selected_states, get_tree_order_comparator
from ..stack_timing import get_stack_timing_by_depth
from ..strategy import get_call_tree_summary_strategy, get_samples_for_call_tree
from ..utils.path_utils import get_call_node_index_from_path, get_call_node_indices_from_paths
from . import preferences as PreferenceSelectors
from . import profile as ProfileSelectors
from .thread import BasicThreadSelectors

logger = logging.getLogger(__name__)

STACK_AND_SAMPLE_SELECTOR_NAMES = (
    'unfiltered_samples_range',
    'get_call_node_info',
    'get_call_node_max_depth',
    'get_selected_call_node_path',
    'get_selected_call_node_index',
    'get_right_clicked_call_node_path',
    'get_right_clicked_call_node_index',
    'get_expanded_call_node_paths',
    'get_expanded_call_node_indexes',
    'get_samples_selected_states_in_filtered_thread',
    'get_tree_order_comparator_in_filtered_thread',
    'get_call_tree_summary_strategy',
    'get_samples_for_call_tree',
    'get_call_tree_counts_and_timings_non_inverted',
    'get_call_tree_counts_and_timings_inverted',
    'get_call_tree_counts_and_timings',
    'get_call_tree',
    'get_stack_timing_by_depth',
    'get_call_node_max_depth_for_flame_graph',
    'get_flame_graph_timing',
)


def _unfiltered_samples_range(thread: Thread, interval: float) -> Optional[StartEndRange]:
    """样本缓冲区可能被清空，这里给出实际采集到的样本的绝对时间范围"""
    time = thread.samples.time
    if not time:
        return None
    return StartEndRange(start=time[0], end=time[-1] + interval)


def _call_node_info_for_thread(thread: Thread, default_category: int) -> CallNodeInfo:
    return compute_call_node_info(
        thread.stack_table, thread.frame_table, thread.func_table, default_category
    )


def _samples_selected_states(thread: Thread, tab_filtered_thread: Thread,
                             call_node_info: CallNodeInfo, selected_call_node: Optional[int]):
    if thread.is_tracer_thread:
        # tracer 线程样本过多，不计算选中状态
        logger.debug(f"线程 {thread.name} 为 tracer 线程，跳过样本选中状态计算")
        return None
    stack_to_call_node = call_node_info.stack_index_to_call_node_index
    sample_call_nodes = get_sample_index_to_call_node_index(thread.samples.stack, stack_to_call_node)
    tab_filtered_call_nodes = get_sample_index_to_call_node_index(
        tab_filtered_thread.samples.stack, stack_to_call_node
    )
    return get_samples_selected_states(
        call_node_info.call_node_table,
        sample_call_nodes,
        tab_filtered_call_nodes,
        selected_call_node,
    )


def _tree_order_comparator(thread: Thread, call_node_info: CallNodeInfo):
    sample_call_nodes = get_sample_index_to_call_node_index(
        thread.samples.stack, call_node_info.stack_index_to_call_node_index
    )
    return get_tree_order_comparator(call_node_info.call_node_table, sample_call_nodes)


def _right_clicked_call_node_index(call_node_info: CallNodeInfo, call_node_path) -> Optional[int]:
    if call_node_path is None:
        return None
    return get_call_node_index_from_path(call_node_path, call_node_info.call_node_table)


def _expanded_call_node_indexes(call_node_info: CallNodeInfo, call_node_paths) -> List[Optional[int]]:
    return get_call_node_indices_from_paths(list(call_node_paths), call_node_info.call_node_table)


def get_stack_and_sample_selectors_per_thread(thread_selectors: BasicThreadSelectors,
                                              graph: DerivationGraph) -> DerivationGraph:
    """
    在线程的派生计算图中注册与栈、样本相关的选择器

    Args:
        thread_selectors: 线程基础选择器
        graph: 该线程独占的派生计算图

    Returns:
        DerivationGraph: 注册完成的计算图
    """
    graph.add('unfiltered_samples_range', create_selector(
        thread_selectors.get_thread,
        ProfileSelectors.get_profile_interval,
        _unfiltered_samples_range,
    ))

    get_call_node_info = graph.add('get_call_node_info', create_selector(
        thread_selectors.get_filtered_thread,
        ProfileSelectors.get_default_category,
        _call_node_info_for_thread,
    ))

    get_call_node_max_depth = graph.add('get_call_node_max_depth', create_selector(
        thread_selectors.get_filtered_thread,
        get_call_node_info,
        compute_call_node_max_depth,
    ))

    get_selected_call_node_path = graph.add('get_selected_call_node_path', create_selector(
        thread_selectors.get_view_options,
        lambda view_options: view_options.selected_call_node_path,
    ))

    get_selected_call_node_index = graph.add('get_selected_call_node_index', create_selector(
        get_call_node_info,
        get_selected_call_node_path,
        lambda call_node_info, call_node_path: get_call_node_index_from_path(
            call_node_path, call_node_info.call_node_table
        ),
    ))

    def get_right_clicked_call_node_path(state):
        return thread_selectors.get_view_options(state).right_clicked_call_node_path

    graph.add('get_right_clicked_call_node_path', get_right_clicked_call_node_path)

    graph.add('get_right_clicked_call_node_index', create_selector(
        get_call_node_info,
        get_right_clicked_call_node_path,
        _right_clicked_call_node_index,
    ))

    get_expanded_call_node_paths = graph.add('get_expanded_call_node_paths', create_selector(
        thread_selectors.get_view_options,
        lambda view_options: view_options.expanded_call_node_paths,
    ))

    graph.add('get_expanded_call_node_indexes', create_selector(
        get_call_node_info,
        get_expanded_call_node_paths,
        _expanded_call_node_indexes,
    ))

    graph.add('get_samples_selected_states_in_filtered_thread', create_selector(
        thread_selectors.get_filtered_thread,
        thread_selectors.get_tab_filtered_thread,
        get_call_node_info,
        get_selected_call_node_index,
        _samples_selected_states,
    ))

    graph.add('get_tree_order_comparator_in_filtered_thread', create_selector(
        thread_selectors.get_filtered_thread,
        get_call_node_info,
        _tree_order_comparator,
    ))

    get_call_tree_summary_strategy_selector = graph.add('get_call_tree_summary_strategy', create_selector(
        thread_selectors.get_thread,
        PreferenceSelectors.get_last_selected_call_tree_summary_strategy,
        get_call_tree_summary_strategy,
    ))

    get_samples_for_call_tree_selector = graph.add('get_samples_for_call_tree', create_selector(
        thread_selectors.get_preview_filtered_thread,
        get_call_tree_summary_strategy_selector,
        get_samples_for_call_tree,
    ))

    # 非反转聚合单独成节点，切换反转时火焰图不需要重新计算
    get_counts_non_inverted = graph.add('get_call_tree_counts_and_timings_non_inverted', create_selector(
        get_samples_for_call_tree_selector,
        get_call_node_info,
        ProfileSelectors.get_profile_interval,
        lambda samples, call_node_info, interval: compute_call_tree_counts_and_timings(
            samples, call_node_info, interval, False
        ),
    ))

    get_counts_inverted = graph.add('get_call_tree_counts_and_timings_inverted', create_selector(
        get_samples_for_call_tree_selector,
        get_call_node_info,
        ProfileSelectors.get_profile_interval,
        lambda samples, call_node_info, interval: compute_call_tree_counts_and_timings(
            samples, call_node_info, interval, True
        ),
    ))

    # 只求值当前方向的聚合节点，另一个方向的缓存保持不动
    def get_call_tree_counts_and_timings(state):
        if PreferenceSelectors.get_invert_callstack(state):
            return get_counts_inverted(state)
        return get_counts_non_inverted(state)

    graph.add('get_call_tree_counts_and_timings', get_call_tree_counts_and_timings)

    graph.add('get_call_tree', create_selector(
        thread_selectors.get_preview_filtered_thread,
        ProfileSelectors.get_categories,
        PreferenceSelectors.get_implementation_filter,
        get_call_tree_counts_and_timings,
        get_call_tree_summary_strategy_selector,
        get_call_tree,
    ))

    graph.add('get_stack_timing_by_depth', create_selector(
        thread_selectors.get_filtered_thread,
        get_call_node_info,
        get_call_node_max_depth,
        ProfileSelectors.get_profile_interval,
        lambda thread, call_node_info, max_depth, interval: get_stack_timing_by_depth(
            thread.samples, call_node_info, max_depth, interval
        ),
    ))

    graph.add('get_call_node_max_depth_for_flame_graph', create_selector(
        thread_selectors.get_preview_filtered_thread,
        get_call_node_info,
        compute_call_node_max_depth,
    ))

    graph.add('get_flame_graph_timing', create_selector(
        thread_selectors.get_preview_filtered_thread,
        get_call_node_info,
        get_counts_non_inverted,
        get_flame_graph_timing,
    ))

    logger.debug(f"线程 {graph.key} 注册了 {len(graph.names())} 个选择器")
    return graph
