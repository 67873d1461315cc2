"""
Profile View Tool Package
"""

from .models import Thread, SummaryStrategy, SelectedState
from .loader import load_profile
from .state import create_initial_state
from .session import ProfileSession
from .call_node_builder import compute_call_node_info

__all__ = [
    'Thread',
    'SummaryStrategy',
    'SelectedState',
    'load_profile',
    'create_initial_state',
    'ProfileSession',
    'compute_call_node_info',
]
