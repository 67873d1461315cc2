"""
Native 内存分配视图转换 (纯函数实现)

输入为 native 分配表：正权重为分配，负权重为释放。
所有转换都是确定性的，返回新表，不修改输入。
"""

from typing import Dict, List
import logging

from .exceptions import CapabilityMissingError
from .models import NativeAllocationsTable

logger = logging.getLogger(__name__)


def _select_rows(table: NativeAllocationsTable, rows: List[int]) -> NativeAllocationsTable:
    memory_address = None
    if table.memory_address is not None:
        memory_address = [table.memory_address[i] for i in rows]
    return NativeAllocationsTable(
        stack=[table.stack[i] for i in rows],
        time=[table.time[i] for i in rows],
        weight=[table.weight[i] for i in rows],
        memory_address=memory_address,
        weight_type=table.weight_type,
    )


def _require_memory_addresses(table: NativeAllocationsTable, view_name: str) -> List[int]:
    if table.memory_address is None:
        raise CapabilityMissingError(
            f"{view_name} 需要内存地址列，但 native 分配表中缺少 memory_address"
        )
    return table.memory_address


def filter_to_allocations(table: NativeAllocationsTable) -> NativeAllocationsTable:
    """只保留分配 (正权重)"""
    rows = [i for i, weight in enumerate(table.weight) if weight > 0]
    return _select_rows(table, rows)


def filter_to_deallocations_sites(table: NativeAllocationsTable) -> NativeAllocationsTable:
    """
    只保留释放 (负权重)，归属到释放发生处自己的栈

    权重保持为负数。
    """
    rows = [i for i, weight in enumerate(table.weight) if weight < 0]
    return _select_rows(table, rows)


def filter_to_retained_allocations(table: NativeAllocationsTable) -> NativeAllocationsTable:
    """
    只保留在当前表范围内没有被释放的分配

    每个释放与同一地址上最近一次尚未配对的分配配对，配对成功的分配被丢弃。
    释放发生在范围之外时，分配不会被配对，因此被保留。

    Raises:
        CapabilityMissingError: 缺少内存地址列
    """
    memory_address = _require_memory_addresses(table, '驻留内存视图')
    retained = [False] * table.length
    address_to_allocation: Dict[int, int] = {}

    for index, weight in enumerate(table.weight):
        address = memory_address[index]
        if weight > 0:
            retained[index] = True
            address_to_allocation[address] = index
        elif weight < 0:
            allocation_index = address_to_allocation.pop(address, None)
            if allocation_index is not None:
                retained[allocation_index] = False

    rows = [i for i, keep in enumerate(retained) if keep]
    logger.debug(f"驻留内存: {len(rows)}/{table.length} 行")
    return _select_rows(table, rows)


def filter_to_deallocations_memory(table: NativeAllocationsTable) -> NativeAllocationsTable:
    """
    统计被释放的内存量

    每个成功配对的释放输出一行：时间和栈取释放本身，权重为配对分配的字节数。
    没有配对分配的释放被丢弃。

    Raises:
        CapabilityMissingError: 缺少内存地址列
    """
    memory_address = _require_memory_addresses(table, '释放内存视图')
    address_to_allocation: Dict[int, int] = {}
    stack, time, weight, addresses = [], [], [], []

    for index, row_weight in enumerate(table.weight):
        address = memory_address[index]
        if row_weight > 0:
            address_to_allocation[address] = index
            continue
        if row_weight == 0:
            continue
        allocation_index = address_to_allocation.pop(address, None)
        if allocation_index is None:
            continue
        stack.append(table.stack[index])
        time.append(table.time[index])
        weight.append(table.weight[allocation_index])
        addresses.append(address)

    return NativeAllocationsTable(
        stack=stack,
        time=time,
        weight=weight,
        memory_address=addresses,
        weight_type=table.weight_type,
    )
