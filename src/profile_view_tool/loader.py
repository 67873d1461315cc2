"""
已导入 Profile 表的 JSON 读取

文件中保存的是导入流水线产出的表结构 (meta + threads)，不做原始
profile 的解析或符号化。支持 .json 与 .json.gz。
"""

import gzip
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

from .models import (
    Category,
    FrameTable,
    FuncTable,
    JsAllocationsTable,
    NativeAllocationsTable,
    SamplesTable,
    StackTable,
    Thread,
)
from .state import Profile, ProfileMeta

logger = logging.getLogger(__name__)


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ValueError(f"{where} 缺少字段: {key}")
    return data[key]


def _check_same_length(where: str, **columns):
    lengths = {name: len(column) for name, column in columns.items() if column is not None}
    if len(set(lengths.values())) > 1:
        raise ValueError(f"{where} 各列长度不一致: {lengths}")


def _parse_samples(data: Dict[str, Any], where: str) -> SamplesTable:
    stack = _require(data, 'stack', where)
    time = _require(data, 'time', where)
    weight = data.get('weight')
    _check_same_length(where, stack=stack, time=time, weight=weight)
    return SamplesTable(stack=stack, time=time, weight=weight,
                        weight_type=data.get('weight_type', 'samples'))


def _parse_js_allocations(data: Optional[Dict[str, Any]], where: str) -> Optional[JsAllocationsTable]:
    if data is None:
        return None
    stack = _require(data, 'stack', where)
    time = _require(data, 'time', where)
    weight = _require(data, 'weight', where)
    _check_same_length(where, stack=stack, time=time, weight=weight)
    return JsAllocationsTable(stack=stack, time=time, weight=weight)


def _parse_native_allocations(data: Optional[Dict[str, Any]], where: str) -> Optional[NativeAllocationsTable]:
    if data is None:
        return None
    stack = _require(data, 'stack', where)
    time = _require(data, 'time', where)
    weight = _require(data, 'weight', where)
    memory_address = data.get('memory_address')
    _check_same_length(where, stack=stack, time=time, weight=weight, memory_address=memory_address)
    return NativeAllocationsTable(stack=stack, time=time, weight=weight, memory_address=memory_address)


def _parse_thread(data: Dict[str, Any], index: int) -> Thread:
    where = f"threads[{index}]"
    func_data = _require(data, 'func_table', where)
    frame_data = _require(data, 'frame_table', where)
    stack_data = _require(data, 'stack_table', where)

    names = _require(func_data, 'name', f"{where}.func_table")
    func_table = FuncTable(
        name=names,
        resource=func_data.get('resource', [''] * len(names)),
        is_js=func_data.get('is_js', [False] * len(names)),
    )
    frame_funcs = _require(frame_data, 'func', f"{where}.frame_table")
    frame_table = FrameTable(
        func=frame_funcs,
        category=frame_data.get('category', [None] * len(frame_funcs)),
    )
    frames = _require(stack_data, 'frame', f"{where}.stack_table")
    prefixes = _require(stack_data, 'prefix', f"{where}.stack_table")
    _check_same_length(f"{where}.stack_table", frame=frames, prefix=prefixes)
    stack_table = StackTable(frame=frames, prefix=prefixes)

    return Thread(
        name=data.get('name', f"Thread {index}"),
        tid=data.get('tid', index),
        stack_table=stack_table,
        frame_table=frame_table,
        func_table=func_table,
        samples=_parse_samples(_require(data, 'samples', where), f"{where}.samples"),
        js_allocations=_parse_js_allocations(data.get('js_allocations'), f"{where}.js_allocations"),
        native_allocations=_parse_native_allocations(
            data.get('native_allocations'), f"{where}.native_allocations"
        ),
        is_tracer_thread=bool(data.get('is_tracer_thread', False)),
    )


def profile_from_dict(data: Dict[str, Any]) -> Profile:
    """从字典构建 Profile"""
    meta_data = _require(data, 'meta', 'profile')
    categories = [
        Category(name=category.get('name', 'Other'), color=category.get('color', 'grey'))
        for category in meta_data.get('categories', [{'name': 'Other'}])
    ]
    meta = ProfileMeta(
        interval=float(_require(meta_data, 'interval', 'meta')),
        categories=categories,
        default_category=meta_data.get('default_category', 0),
    )
    threads = [_parse_thread(thread, i) for i, thread in enumerate(_require(data, 'threads', 'profile'))]
    return Profile(meta=meta, threads=threads)


def load_profile(file_path: Union[str, Path]) -> Profile:
    """
    读取 profile 表文件

    Args:
        file_path: .json 或 .json.gz 文件路径

    Returns:
        Profile: profile 数据

    Raises:
        FileNotFoundError: 文件不存在
        ValueError: 文件内容不合法
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"文件不存在: {file_path}")

    if file_path.suffix == '.gz':
        with gzip.open(file_path, 'rt', encoding='utf-8') as f:
            data = json.load(f)
    else:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

    profile = profile_from_dict(data)
    logger.info(f"读取 {file_path} 成功，包含 {len(profile.threads)} 个线程")
    return profile
