# -*- coding: utf-8 -*-
"""
CLI验证器模块
"""

from typing import List, Tuple

from ..models import FuncTable, SummaryStrategy
from ..presenter import SUPPORTED_OUTPUT_FORMATS
from ..state import IMPLEMENTATION_FILTERS


def validate_strategy(strategy_spec: str) -> SummaryStrategy:
    """
    验证汇总策略名称

    Args:
        strategy_spec: 策略名称，如 timing / native-retained-allocations

    Returns:
        SummaryStrategy: 对应的策略

    Raises:
        ValueError: 策略名称不合法
    """
    if not strategy_spec or not strategy_spec.strip():
        raise ValueError("汇总策略不能为空")
    try:
        return SummaryStrategy(strategy_spec.strip())
    except ValueError:
        valid = ', '.join(strategy.value for strategy in SummaryStrategy)
        raise ValueError(f"不支持的汇总策略: {strategy_spec}。支持的策略: {valid}")


def validate_implementation_filter(implementation_spec: str) -> str:
    """验证实现过滤取值"""
    implementation = (implementation_spec or '').strip()
    if implementation not in IMPLEMENTATION_FILTERS:
        raise ValueError(
            f"不支持的实现过滤: {implementation_spec}。支持的取值: {', '.join(IMPLEMENTATION_FILTERS)}"
        )
    return implementation


def parse_call_node_path(path_spec: str, func_table: FuncTable) -> Tuple[int, ...]:
    """
    将 "func;func;func" 形式的调用路径转换为函数索引路径

    同名函数取第一个出现的索引。

    Args:
        path_spec: 分号分隔的函数名
        func_table: 函数表

    Returns:
        Tuple[int, ...]: 函数索引路径，空字符串返回空路径

    Raises:
        ValueError: 函数名不存在或路径中有空段
    """
    if not path_spec or not path_spec.strip():
        return ()

    name_to_func = {}
    for func_index, name in enumerate(func_table.name):
        name_to_func.setdefault(name, func_index)

    path = []
    for name in path_spec.split(';'):
        name = name.strip()
        if not name:
            raise ValueError(f"调用路径中存在空的函数名: {path_spec}")
        if name not in name_to_func:
            raise ValueError(f"函数不存在: {name}")
        path.append(name_to_func[name])
    return tuple(path)


def parse_output_formats(format_spec: str) -> List[str]:
    """
    解析逗号分隔的输出格式

    Returns:
        List[str]: 去重后的输出格式，保持原有顺序

    Raises:
        ValueError: 包含不支持的格式
    """
    formats = []
    for output_format in (format_spec or '').split(','):
        output_format = output_format.strip()
        if not output_format:
            continue
        if output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise ValueError(
                f"不支持的输出格式: {output_format}。支持的格式: {', '.join(SUPPORTED_OUTPUT_FORMATS)}"
            )
        if output_format not in formats:
            formats.append(output_format)
    return formats


def validate_thread_index(thread_index: int, thread_count: int) -> int:
    """验证线程索引"""
    if not 0 <= thread_index < thread_count:
        raise ValueError(f"线程索引越界: {thread_index}，共 {thread_count} 个线程")
    return thread_index
