# -*- coding: utf-8 -*-
"""
CLI会话构建工具
"""

from ..loader import load_profile
from ..session import ProfileSession
from ..state import SessionPreferences, create_initial_state
from .validators import (
    parse_call_node_path,
    validate_implementation_filter,
    validate_strategy,
    validate_thread_index,
)


def open_session(args) -> ProfileSession:
    """
    根据命令行参数读取 profile 并创建会话

    选中路径 (--select) 会写入对应线程的视图选项。

    Raises:
        FileNotFoundError: 文件不存在
        ValueError: 参数或文件内容不合法
    """
    strategy = validate_strategy(args.strategy)
    implementation = validate_implementation_filter(args.implementation)
    profile = load_profile(args.file)
    thread_index = validate_thread_index(args.thread, len(profile.threads))

    preferences = SessionPreferences(
        last_selected_call_tree_summary_strategy=strategy,
        invert_callstack=args.invert,
        implementation_filter=implementation,
    )
    session = ProfileSession(create_initial_state(profile, preferences))

    if getattr(args, 'select', None):
        thread = profile.threads[thread_index]
        path = parse_call_node_path(args.select, thread.func_table)
        session.change_selected_call_node(thread_index, path)
    return session
