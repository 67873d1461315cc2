"""
会话偏好选择器
"""

from ..models import SummaryStrategy
from ..state import AppState


def get_last_selected_call_tree_summary_strategy(state: AppState) -> SummaryStrategy:
    return state.preferences.last_selected_call_tree_summary_strategy


def get_invert_callstack(state: AppState) -> bool:
    return state.preferences.invert_callstack


def get_implementation_filter(state: AppState) -> str:
    return state.preferences.implementation_filter
