"""
CLI命令模块
"""

from .calltree import CallTreeCommand
from .timing import TimingCommand

__all__ = ['CallTreeCommand', 'TimingCommand']
