# -*- coding: utf-8 -*-
"""
应用状态定义 (纯函数更新)

状态对象只能整体替换：每个 with_* 函数返回新的 AppState，未改动的部分
保持原有引用，这样派生计算图可以用引用比较判断上游是否变化。
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from .models import CallNodePath, Category, SummaryStrategy, Thread
from .utils.checks import coerce_variant
from .utils.path_utils import PathSet

IMPLEMENTATION_FILTERS = ('combined', 'js', 'cpp')


@dataclass
class ProfileMeta:
    """Profile 级别的元信息"""
    interval: float
    categories: List[Category] = field(default_factory=lambda: [Category('Other')])
    default_category: int = 0


@dataclass
class Profile:
    meta: ProfileMeta
    threads: List[Thread]


@dataclass
class ThreadViewOptions:
    """单个线程的视图选项"""
    selected_call_node_path: CallNodePath = ()
    right_clicked_call_node_path: Optional[CallNodePath] = None
    expanded_call_node_paths: PathSet = field(default_factory=PathSet)


# 没有视图选项的线程共享同一个默认对象，保证引用稳定
DEFAULT_THREAD_VIEW_OPTIONS = ThreadViewOptions()


@dataclass
class SessionPreferences:
    """会话级偏好"""
    last_selected_call_tree_summary_strategy: SummaryStrategy = SummaryStrategy.TIMING
    invert_callstack: bool = False
    implementation_filter: str = 'combined'

    def __post_init__(self):
        self.last_selected_call_tree_summary_strategy = coerce_variant(
            SummaryStrategy, self.last_selected_call_tree_summary_strategy
        )
        if self.implementation_filter not in IMPLEMENTATION_FILTERS:
            raise ValueError(
                f"不支持的实现过滤: {self.implementation_filter}。"
                f"支持的取值: {', '.join(IMPLEMENTATION_FILTERS)}"
            )


@dataclass
class ThreadVariants:
    """外部过滤流水线产出的线程变体"""
    filtered: Thread
    preview_filtered: Thread
    tab_filtered: Thread

    @classmethod
    def unfiltered(cls, thread: Thread) -> 'ThreadVariants':
        """没有任何过滤时三个变体都是原线程"""
        return cls(filtered=thread, preview_filtered=thread, tab_filtered=thread)


@dataclass
class AppState:
    profile: Profile
    preferences: SessionPreferences = field(default_factory=SessionPreferences)
    view_options: Dict[int, ThreadViewOptions] = field(default_factory=dict)
    thread_variants: Dict[int, ThreadVariants] = field(default_factory=dict)


def create_initial_state(profile: Profile,
                         preferences: Optional[SessionPreferences] = None) -> AppState:
    """创建初始状态，每个线程的变体都是未过滤的原线程"""
    return AppState(
        profile=profile,
        preferences=preferences or SessionPreferences(),
        view_options={},
        thread_variants={
            index: ThreadVariants.unfiltered(thread)
            for index, thread in enumerate(profile.threads)
        },
    )


def _check_thread_index(state: AppState, thread_index: int):
    if not 0 <= thread_index < len(state.profile.threads):
        raise IndexError(f"线程索引越界: {thread_index}，共 {len(state.profile.threads)} 个线程")


def with_view_options(state: AppState, thread_index: int, **changes) -> AppState:
    """返回更新了某个线程视图选项的新状态"""
    _check_thread_index(state, thread_index)
    current = state.view_options.get(thread_index, DEFAULT_THREAD_VIEW_OPTIONS)
    if 'selected_call_node_path' in changes:
        changes['selected_call_node_path'] = tuple(changes['selected_call_node_path'])
    view_options = dict(state.view_options)
    view_options[thread_index] = replace(current, **changes)
    return replace(state, view_options=view_options)


def with_preferences(state: AppState, **changes) -> AppState:
    """返回更新了会话偏好的新状态"""
    return replace(state, preferences=replace(state.preferences, **changes))


def with_thread_variants(state: AppState, thread_index: int,
                         variants: ThreadVariants) -> AppState:
    """返回替换了某个线程过滤变体的新状态"""
    _check_thread_index(state, thread_index)
    thread_variants = dict(state.thread_variants)
    thread_variants[thread_index] = variants
    return replace(state, thread_variants=thread_variants)
