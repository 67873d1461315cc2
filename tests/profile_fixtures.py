"""
测试用的线程构造工具

用文本调用路径描述样本，例如 "A;B;C" 表示 A 调用 B 再调用 C。
每个函数只有一个帧，帧索引与函数索引相同。
"""

from typing import Dict, List, Optional, Sequence, Tuple

from profile_view_tool.models import (
    Category,
    FrameTable,
    FuncTable,
    JsAllocationsTable,
    NativeAllocationsTable,
    SamplesTable,
    StackTable,
    Thread,
)
from profile_view_tool.state import Profile, ProfileMeta

CATEGORIES = [Category('Other', 'grey'), Category('JavaScript', 'yellow'), Category('Layout', 'purple')]


class _TableBuilder:
    def __init__(self, categories_by_func: Optional[Dict[str, int]] = None):
        self.categories_by_func = categories_by_func or {}
        self.func_names: List[str] = []
        self.func_index: Dict[str, int] = {}
        self.frame_category: List[Optional[int]] = []
        self.stack_frame: List[int] = []
        self.stack_prefix: List[Optional[int]] = []
        self.stack_lookup: Dict[Tuple[Optional[int], int], int] = {}

    def func_for(self, name: str) -> int:
        func = self.func_index.get(name)
        if func is None:
            func = len(self.func_names)
            self.func_names.append(name)
            self.func_index[name] = func
            self.frame_category.append(self.categories_by_func.get(name))
        return func

    def stack_for(self, path: Optional[str]) -> Optional[int]:
        if not path:
            return None
        prefix = None
        for name in path.split(';'):
            frame = self.func_for(name.strip())
            key = (prefix, frame)
            stack = self.stack_lookup.get(key)
            if stack is None:
                stack = len(self.stack_frame)
                self.stack_frame.append(frame)
                self.stack_prefix.append(prefix)
                self.stack_lookup[key] = stack
            prefix = stack
        return prefix


def build_thread(sample_paths: Sequence[Optional[str]],
                 times: Optional[Sequence[float]] = None,
                 name: str = 'Thread',
                 tid: int = 1,
                 weight: Optional[Sequence[float]] = None,
                 weight_type: str = 'samples',
                 js_allocations: Optional[Sequence[Tuple[str, float]]] = None,
                 native_allocations: Optional[Sequence[Tuple]] = None,
                 categories_by_func: Optional[Dict[str, int]] = None,
                 is_tracer_thread: bool = False) -> Thread:
    """
    构造线程

    Args:
        sample_paths: 每个样本的调用路径，None 表示没有栈
        times: 样本时间，默认为 0, 1, 2, ...
        js_allocations: (调用路径, 字节数) 列表
        native_allocations: (调用路径, 字节数) 或 (调用路径, 字节数, 地址) 列表，
            全部带地址时才生成 memory_address 列
        categories_by_func: 函数名 -> 分类索引，未指定的帧没有分类
    """
    builder = _TableBuilder(categories_by_func)
    sample_stacks = [builder.stack_for(path) for path in sample_paths]
    if times is None:
        times = [float(i) for i in range(len(sample_paths))]

    js_table = None
    if js_allocations is not None:
        js_table = JsAllocationsTable(
            stack=[builder.stack_for(path) for path, _ in js_allocations],
            time=[float(i) for i in range(len(js_allocations))],
            weight=[bytes_ for _, bytes_ in js_allocations],
        )

    native_table = None
    if native_allocations is not None:
        has_addresses = all(len(row) == 3 for row in native_allocations)
        native_table = NativeAllocationsTable(
            stack=[builder.stack_for(row[0]) for row in native_allocations],
            time=[float(i) for i in range(len(native_allocations))],
            weight=[row[1] for row in native_allocations],
            memory_address=[row[2] for row in native_allocations] if has_addresses else None,
        )

    return Thread(
        name=name,
        tid=tid,
        stack_table=StackTable(frame=builder.stack_frame, prefix=builder.stack_prefix),
        frame_table=FrameTable(
            func=list(range(len(builder.func_names))),
            category=builder.frame_category,
        ),
        func_table=FuncTable(
            name=builder.func_names,
            resource=['libxul.so'] * len(builder.func_names),
            is_js=[False] * len(builder.func_names),
        ),
        samples=SamplesTable(
            stack=sample_stacks,
            time=list(times),
            weight=list(weight) if weight is not None else None,
            weight_type=weight_type,
        ),
        js_allocations=js_table,
        native_allocations=native_table,
        is_tracer_thread=is_tracer_thread,
    )


def build_profile(*threads: Thread, interval: float = 1.0) -> Profile:
    """用给定线程构造 profile"""
    return Profile(
        meta=ProfileMeta(interval=interval, categories=list(CATEGORIES), default_category=0),
        threads=list(threads),
    )


def func_path(thread: Thread, path: str) -> Tuple[int, ...]:
    """将 "A;B" 转换为函数索引路径"""
    index = {name: i for i, name in enumerate(thread.func_table.name)}
    return tuple(index[name] for name in path.split(';'))


def profile_dict() -> dict:
    """loader 使用的 JSON 文档: A -> {B, C} 三个样本，外加 native 分配表"""
    return {
        'meta': {
            'interval': 1.0,
            'categories': [{'name': 'Other', 'color': 'grey'}],
            'default_category': 0,
        },
        'threads': [
            {
                'name': 'GeckoMain',
                'tid': 7,
                'func_table': {'name': ['A', 'B', 'C'], 'resource': ['', '', ''],
                               'is_js': [False, False, False]},
                'frame_table': {'func': [0, 1, 2], 'category': [None, None, None]},
                'stack_table': {'frame': [0, 1, 2], 'prefix': [None, 0, 0]},
                'samples': {'stack': [1, 1, 2], 'time': [0.0, 1.0, 2.0]},
                'native_allocations': {
                    'stack': [1, 2],
                    'time': [0.0, 1.0],
                    'weight': [100, -100],
                    'memory_address': [1, 1],
                },
            },
        ],
    }
