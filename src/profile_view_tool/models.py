# -*- coding: utf-8 -*-
"""
Profile 表结构与派生数据模型定义

所有表在发布后视为不可变：列为普通 list，生产者只能整体替换对象
(dataclasses.replace)，不能原地修改，否则基于引用的缓存会失效。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union


# 调用节点路径：从根到目标节点的函数索引序列
CallNodePath = Tuple[int, ...]

# 根调用节点的 prefix
ROOT_PREFIX = -1


class DataKind(Enum):
    """线程支持的数据种类（能力描述）"""
    JS_ALLOCATIONS = 'js-allocations'
    NATIVE_ALLOCATIONS = 'native-allocations'
    NATIVE_MEMORY_ADDRESSES = 'native-memory-addresses'


class SummaryStrategy(str, Enum):
    """调用树汇总策略：决定哪一路事件流喂给调用树"""
    TIMING = 'timing'
    JS_ALLOCATIONS = 'js-allocations'
    NATIVE_ALLOCATIONS = 'native-allocations'
    NATIVE_RETAINED_ALLOCATIONS = 'native-retained-allocations'
    NATIVE_DEALLOCATIONS_SITES = 'native-deallocations-sites'
    NATIVE_DEALLOCATIONS_MEMORY = 'native-deallocations-memory'


class SelectedState(str, Enum):
    """样本相对于选中调用节点的状态"""
    SELECTED = 'SELECTED'
    UNSELECTED_ORDERED_BEFORE_SELECTED = 'UNSELECTED_ORDERED_BEFORE_SELECTED'
    UNSELECTED_ORDERED_AFTER_SELECTED = 'UNSELECTED_ORDERED_AFTER_SELECTED'
    FILTERED_OUT_BY_TAB = 'FILTERED_OUT_BY_TAB'
    FILTERED_OUT_BY_TRANSFORM = 'FILTERED_OUT_BY_TRANSFORM'


@dataclass
class Category:
    """分类"""
    name: str
    color: str = 'grey'


@dataclass
class FuncTable:
    """函数表"""
    name: List[str]
    resource: List[str] = field(default_factory=list)
    is_js: List[bool] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.name)


@dataclass
class FrameTable:
    """帧表，category 为 None 时使用 profile 的默认分类"""
    func: List[int]
    category: List[Optional[int]] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.func)


@dataclass
class StackTable:
    """栈表，prefix 指向父栈，父栈总是排在子栈之前"""
    frame: List[Optional[int]]
    prefix: List[Optional[int]]

    @property
    def length(self) -> int:
        return len(self.frame)


@dataclass
class SamplesTable:
    """采样表 (timing 事件流)"""
    stack: List[Optional[int]]
    time: List[float]
    # 可选权重列，weight_type 取值: samples, tracing-ms, bytes
    weight: Optional[List[float]] = None
    weight_type: str = 'samples'

    @property
    def length(self) -> int:
        return len(self.stack)


@dataclass
class JsAllocationsTable:
    """JS 内存分配表"""
    stack: List[Optional[int]]
    time: List[float]
    weight: List[float]
    weight_type: str = 'bytes'

    @property
    def length(self) -> int:
        return len(self.stack)


@dataclass
class NativeAllocationsTable:
    """Native 内存分配表，正权重为分配，负权重为释放"""
    stack: List[Optional[int]]
    time: List[float]
    weight: List[float]
    memory_address: Optional[List[int]] = None
    weight_type: str = 'bytes'

    @property
    def length(self) -> int:
        return len(self.stack)


# 调用树可以汇总的任意一路事件流
WeightedTable = Union[SamplesTable, JsAllocationsTable, NativeAllocationsTable]


@dataclass
class Thread:
    """线程数据"""
    name: str
    tid: Union[int, str]
    stack_table: StackTable
    frame_table: FrameTable
    func_table: FuncTable
    samples: SamplesTable
    js_allocations: Optional[JsAllocationsTable] = None
    native_allocations: Optional[NativeAllocationsTable] = None
    # 极细粒度的 tracer 线程，样本选中状态计算代价过高，显式跳过
    is_tracer_thread: bool = False
    capabilities: FrozenSet[DataKind] = field(init=False)

    def __post_init__(self):
        kinds = set()
        if self.js_allocations is not None:
            kinds.add(DataKind.JS_ALLOCATIONS)
        if self.native_allocations is not None:
            kinds.add(DataKind.NATIVE_ALLOCATIONS)
            if self.native_allocations.memory_address is not None:
                kinds.add(DataKind.NATIVE_MEMORY_ADDRESSES)
        self.capabilities = frozenset(kinds)

    def supports(self, kind: DataKind) -> bool:
        return kind in self.capabilities


@dataclass
class CallNodeTable:
    """调用节点表，(prefix, func) 唯一确定一个调用节点"""
    func: List[int]
    category: List[int]
    depth: List[int]
    prefix: List[int]
    # (prefix 调用节点, 函数) -> 调用节点索引
    child_lookup: Dict[Tuple[int, int], int] = field(default_factory=dict, repr=False)

    @property
    def length(self) -> int:
        return len(self.func)

    def get_child(self, prefix: int, func: int) -> Optional[int]:
        return self.child_lookup.get((prefix, func))


@dataclass
class CallNodeInfo:
    """调用节点表以及原始栈索引到调用节点索引的映射"""
    call_node_table: CallNodeTable
    stack_index_to_call_node_index: List[Optional[int]]


@dataclass
class StartEndRange:
    start: float
    end: float
