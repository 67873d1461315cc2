"""
线程基础选择器

过滤变体由外部过滤流水线写入状态，这里只负责读取。
"""

from dataclasses import dataclass
from typing import Callable

from ..models import Thread
from ..state import AppState, DEFAULT_THREAD_VIEW_OPTIONS, ThreadViewOptions


@dataclass
class BasicThreadSelectors:
    """单个线程的基础访问器，均为 state -> 值 的普通函数"""
    get_thread: Callable[[AppState], Thread]
    get_filtered_thread: Callable[[AppState], Thread]
    get_preview_filtered_thread: Callable[[AppState], Thread]
    get_tab_filtered_thread: Callable[[AppState], Thread]
    get_view_options: Callable[[AppState], ThreadViewOptions]


def get_basic_thread_selectors(thread_index: int) -> BasicThreadSelectors:
    """创建某个线程的基础选择器"""

    def get_thread(state: AppState) -> Thread:
        return state.profile.threads[thread_index]

    def _variant(state: AppState, attribute: str) -> Thread:
        variants = state.thread_variants.get(thread_index)
        if variants is None:
            # 没有过滤变体时直接使用原线程，引用保持稳定
            return get_thread(state)
        return getattr(variants, attribute)

    def get_filtered_thread(state: AppState) -> Thread:
        return _variant(state, 'filtered')

    def get_preview_filtered_thread(state: AppState) -> Thread:
        return _variant(state, 'preview_filtered')

    def get_tab_filtered_thread(state: AppState) -> Thread:
        return _variant(state, 'tab_filtered')

    def get_view_options(state: AppState) -> ThreadViewOptions:
        return state.view_options.get(thread_index, DEFAULT_THREAD_VIEW_OPTIONS)

    return BasicThreadSelectors(
        get_thread=get_thread,
        get_filtered_thread=get_filtered_thread,
        get_preview_filtered_thread=get_preview_filtered_thread,
        get_tab_filtered_thread=get_tab_filtered_thread,
        get_view_options=get_view_options,
    )
