# -*- coding: utf-8 -*-
"""
调用树汇总策略

决定调用树汇总哪一路事件流。上次选择的策略在当前线程不被支持时
(例如切换到没有分配数据的线程) 静默回退到 timing，而不是报错。
"""

from typing import Callable, Dict, Union
import logging

from .allocations import (
    filter_to_allocations,
    filter_to_deallocations_memory,
    filter_to_deallocations_sites,
    filter_to_retained_allocations,
)
from .models import DataKind, SummaryStrategy, Thread, WeightedTable
from .utils.checks import check_handlers_cover, coerce_variant, ensure_exists

logger = logging.getLogger(__name__)


# 每种策略需要线程具备的能力，None 表示任何线程都支持
_REQUIRED_CAPABILITY: Dict[SummaryStrategy, Union[DataKind, None]] = {
    SummaryStrategy.TIMING: None,
    SummaryStrategy.JS_ALLOCATIONS: DataKind.JS_ALLOCATIONS,
    SummaryStrategy.NATIVE_ALLOCATIONS: DataKind.NATIVE_ALLOCATIONS,
    SummaryStrategy.NATIVE_RETAINED_ALLOCATIONS: DataKind.NATIVE_ALLOCATIONS,
    SummaryStrategy.NATIVE_DEALLOCATIONS_SITES: DataKind.NATIVE_ALLOCATIONS,
    SummaryStrategy.NATIVE_DEALLOCATIONS_MEMORY: DataKind.NATIVE_ALLOCATIONS,
}
check_handlers_cover(SummaryStrategy, _REQUIRED_CAPABILITY, '策略能力表')


def get_call_tree_summary_strategy(thread: Thread,
                                   last_selected_strategy: Union[SummaryStrategy, str]
                                   ) -> SummaryStrategy:
    """
    计算当前线程实际生效的汇总策略

    Args:
        thread: 线程
        last_selected_strategy: 用户上次选择的策略

    Returns:
        SummaryStrategy: 线程支持时返回上次选择的策略，否则返回 timing

    Raises:
        UnhandledVariantError: 无法识别的策略取值
    """
    strategy = coerce_variant(SummaryStrategy, last_selected_strategy)
    required = _REQUIRED_CAPABILITY[strategy]
    if required is not None and not thread.supports(required):
        logger.info(f"线程 {thread.name} 不支持 {strategy.value} 策略，回退到 timing")
        return SummaryStrategy.TIMING
    return strategy


def _native_allocations(thread: Thread, strategy: SummaryStrategy):
    return ensure_exists(
        thread.native_allocations,
        f"使用 {strategy.value} 策略时线程 {thread.name} 必须有 native 分配表",
    )


def _timing_rows(thread: Thread, strategy: SummaryStrategy) -> WeightedTable:
    return thread.samples


def _js_allocation_rows(thread: Thread, strategy: SummaryStrategy) -> WeightedTable:
    return ensure_exists(
        thread.js_allocations,
        f"使用 {strategy.value} 策略时线程 {thread.name} 必须有 JS 分配表",
    )


def _native_allocation_rows(thread: Thread, strategy: SummaryStrategy) -> WeightedTable:
    return filter_to_allocations(_native_allocations(thread, strategy))


def _native_retained_rows(thread: Thread, strategy: SummaryStrategy) -> WeightedTable:
    return filter_to_retained_allocations(_native_allocations(thread, strategy))


def _native_deallocation_site_rows(thread: Thread, strategy: SummaryStrategy) -> WeightedTable:
    return filter_to_deallocations_sites(_native_allocations(thread, strategy))


def _native_deallocation_memory_rows(thread: Thread, strategy: SummaryStrategy) -> WeightedTable:
    return filter_to_deallocations_memory(_native_allocations(thread, strategy))


_ROW_SOURCES: Dict[SummaryStrategy, Callable[[Thread, SummaryStrategy], WeightedTable]] = {
    SummaryStrategy.TIMING: _timing_rows,
    SummaryStrategy.JS_ALLOCATIONS: _js_allocation_rows,
    SummaryStrategy.NATIVE_ALLOCATIONS: _native_allocation_rows,
    SummaryStrategy.NATIVE_RETAINED_ALLOCATIONS: _native_retained_rows,
    SummaryStrategy.NATIVE_DEALLOCATIONS_SITES: _native_deallocation_site_rows,
    SummaryStrategy.NATIVE_DEALLOCATIONS_MEMORY: _native_deallocation_memory_rows,
}
check_handlers_cover(SummaryStrategy, _ROW_SOURCES, '调用树事件流分派表')


def get_samples_for_call_tree(thread: Thread,
                              strategy: Union[SummaryStrategy, str]) -> WeightedTable:
    """
    获取喂给调用树的事件流

    Raises:
        CapabilityMissingError: 线程缺少策略所需的表或内存地址列
        UnhandledVariantError: 无法识别的策略取值
    """
    strategy = coerce_variant(SummaryStrategy, strategy)
    return _ROW_SOURCES[strategy](thread, strategy)
