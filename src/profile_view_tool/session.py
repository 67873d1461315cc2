# -*- coding: utf-8 -*-
"""
会话与按线程的派生计算图注册表

派生计算图按线程索引保存在会话持有的注册表中，首次访问时创建，
随会话一起丢弃，不存在进程级别的单例。
"""

from typing import Any, Callable, Dict, List, Optional
import logging

from .derivation import DerivationGraph
from .models import SummaryStrategy
from .selectors import get_basic_thread_selectors, get_stack_and_sample_selectors_per_thread
from .state import (
    AppState,
    ThreadVariants,
    with_preferences,
    with_thread_variants,
    with_view_options,
)

logger = logging.getLogger(__name__)


class DerivationGraphRegistry:
    """线程索引 -> 派生计算图"""

    def __init__(self):
        self._graphs: Dict[int, DerivationGraph] = {}

    def get_or_create(self, thread_index: int) -> DerivationGraph:
        graph = self._graphs.get(thread_index)
        if graph is None:
            graph = DerivationGraph(thread_index)
            get_stack_and_sample_selectors_per_thread(get_basic_thread_selectors(thread_index), graph)
            self._graphs[thread_index] = graph
            logger.debug(f"为线程 {thread_index} 创建派生计算图")
        return graph

    def __contains__(self, thread_index: int) -> bool:
        return thread_index in self._graphs

    def __len__(self) -> int:
        return len(self._graphs)

    def clear(self):
        self._graphs.clear()


class ThreadSelectors:
    """
    单个线程的零参数访问器

    每个方法读取会话的当前状态，再经由该线程的派生计算图求值。
    状态不变时重复读取返回同一个缓存对象。
    """

    def __init__(self, graph: DerivationGraph, get_state: Callable[[], AppState]):
        self._graph = graph
        self._get_state = get_state

    @property
    def graph(self) -> DerivationGraph:
        return self._graph

    def _read(self, name: str) -> Any:
        return self._graph.get(name)(self._get_state())

    def unfiltered_samples_range(self):
        return self._read('unfiltered_samples_range')

    def get_call_node_info(self):
        return self._read('get_call_node_info')

    def get_call_node_max_depth(self) -> int:
        return self._read('get_call_node_max_depth')

    def get_selected_call_node_path(self):
        return self._read('get_selected_call_node_path')

    def get_selected_call_node_index(self) -> Optional[int]:
        return self._read('get_selected_call_node_index')

    def get_right_clicked_call_node_path(self):
        return self._read('get_right_clicked_call_node_path')

    def get_right_clicked_call_node_index(self) -> Optional[int]:
        return self._read('get_right_clicked_call_node_index')

    def get_expanded_call_node_paths(self):
        return self._read('get_expanded_call_node_paths')

    def get_expanded_call_node_indexes(self) -> List[Optional[int]]:
        return self._read('get_expanded_call_node_indexes')

    def get_samples_selected_states_in_filtered_thread(self):
        return self._read('get_samples_selected_states_in_filtered_thread')

    def get_tree_order_comparator_in_filtered_thread(self):
        return self._read('get_tree_order_comparator_in_filtered_thread')

    def get_call_tree_summary_strategy(self) -> SummaryStrategy:
        return self._read('get_call_tree_summary_strategy')

    def get_samples_for_call_tree(self):
        return self._read('get_samples_for_call_tree')

    def get_call_tree_counts_and_timings(self):
        return self._read('get_call_tree_counts_and_timings')

    def get_call_tree(self):
        return self._read('get_call_tree')

    def get_stack_timing_by_depth(self):
        return self._read('get_stack_timing_by_depth')

    def get_call_node_max_depth_for_flame_graph(self) -> int:
        return self._read('get_call_node_max_depth_for_flame_graph')

    def get_flame_graph_timing(self):
        return self._read('get_flame_graph_timing')


class ProfileSession:
    """
    持有应用状态与派生计算图注册表

    所有状态变更都通过整体替换 AppState 完成。
    """

    def __init__(self, state: AppState):
        self._state = state
        self._registry: Optional[DerivationGraphRegistry] = DerivationGraphRegistry()

    @property
    def state(self) -> AppState:
        return self._state

    def set_state(self, state: AppState):
        self._state = state

    @property
    def registry(self) -> DerivationGraphRegistry:
        if self._registry is None:
            raise RuntimeError("会话已关闭")
        return self._registry

    def for_thread(self, thread_index: int) -> ThreadSelectors:
        """获取某个线程的访问器"""
        thread_count = len(self._state.profile.threads)
        if not 0 <= thread_index < thread_count:
            raise IndexError(f"线程索引越界: {thread_index}，共 {thread_count} 个线程")
        graph = self.registry.get_or_create(thread_index)
        return ThreadSelectors(graph, lambda: self._state)

    def change_selected_call_node(self, thread_index: int, call_node_path):
        self.set_state(with_view_options(self._state, thread_index,
                                         selected_call_node_path=tuple(call_node_path)))

    def change_right_clicked_call_node(self, thread_index: int, call_node_path):
        path = None if call_node_path is None else tuple(call_node_path)
        self.set_state(with_view_options(self._state, thread_index,
                                         right_clicked_call_node_path=path))

    def expand_call_node(self, thread_index: int, call_node_path):
        current = self.for_thread(thread_index).get_expanded_call_node_paths()
        expanded = current.add(call_node_path)
        if expanded is not current:
            self.set_state(with_view_options(self._state, thread_index,
                                             expanded_call_node_paths=expanded))

    def collapse_call_node(self, thread_index: int, call_node_path):
        current = self.for_thread(thread_index).get_expanded_call_node_paths()
        collapsed = current.remove(call_node_path)
        if collapsed is not current:
            self.set_state(with_view_options(self._state, thread_index,
                                             expanded_call_node_paths=collapsed))

    def change_call_tree_summary_strategy(self, strategy):
        self.set_state(with_preferences(self._state,
                                        last_selected_call_tree_summary_strategy=strategy))

    def change_invert_callstack(self, invert_callstack: bool):
        if invert_callstack != self._state.preferences.invert_callstack:
            self.set_state(with_preferences(self._state, invert_callstack=bool(invert_callstack)))

    def change_implementation_filter(self, implementation_filter: str):
        self.set_state(with_preferences(self._state, implementation_filter=implementation_filter))

    def update_thread_variants(self, thread_index: int, variants: ThreadVariants):
        """外部过滤流水线产出新的线程变体后调用"""
        self.set_state(with_thread_variants(self._state, thread_index, variants))

    def close(self):
        """丢弃全部派生计算图"""
        if self._registry is not None:
            self._registry.clear()
            self._registry = None
