"""
选择器模块
"""

from .thread import get_basic_thread_selectors
from .per_thread import get_stack_and_sample_selectors_per_thread, STACK_AND_SAMPLE_SELECTOR_NAMES

__all__ = [
    'get_basic_thread_selectors',
    'get_stack_and_sample_selectors_per_thread',
    'STACK_AND_SAMPLE_SELECTOR_NAMES',
]
