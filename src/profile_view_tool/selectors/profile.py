"""
Profile 级别选择器
"""

from typing import List

from ..models import Category
from ..state import AppState


def get_profile_interval(state: AppState) -> float:
    return state.profile.meta.interval


def get_default_category(state: AppState) -> int:
    return state.profile.meta.default_category


def get_categories(state: AppState) -> List[Category]:
    return state.profile.meta.categories
