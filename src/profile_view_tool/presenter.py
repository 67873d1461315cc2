"""
派生视图导出 (纯函数实现)

把调用树、栈时间图、火焰图布局转换为 DataFrame，并写出 JSON / Excel。
"""

from pathlib import Path
from typing import List, Optional, Sequence
import json
import logging

import pandas as pd

from .call_tree import CallTree
from .flame_graph import FlameGraphRow
from .models import FuncTable, CallNodeInfo
from .stack_timing import StackTiming

logger = logging.getLogger(__name__)

SUPPORTED_OUTPUT_FORMATS = ('json', 'xlsx')


def call_tree_to_dataframe(call_tree: CallTree, max_depth: Optional[int] = None) -> pd.DataFrame:
    """
    将调用树按展示顺序展开为表格

    Args:
        call_tree: 调用树
        max_depth: 最大展开深度，None 表示全部展开

    Returns:
        pd.DataFrame: 每行一个可见调用节点
    """
    rows = list(call_tree.iter_rows(max_depth=max_depth))
    columns = ['call_node', 'depth', 'name', 'total', 'self', 'total_count',
               'self_count', 'total_percent', 'category', 'lib']
    return pd.DataFrame(rows, columns=columns)


def stack_timing_to_dataframe(stack_timing_by_depth: Sequence[StackTiming],
                              call_node_info: CallNodeInfo, func_table: FuncTable) -> pd.DataFrame:
    """将栈时间图的每个区间展开为一行"""
    funcs = call_node_info.call_node_table.func
    rows = []
    for depth, timing in enumerate(stack_timing_by_depth):
        for i in range(timing.length):
            call_node_index = timing.call_node[i]
            rows.append({
                'depth': depth,
                'start': timing.start[i],
                'end': timing.end[i],
                'duration': timing.end[i] - timing.start[i],
                'call_node': call_node_index,
                'name': func_table.name[funcs[call_node_index]],
            })
    return pd.DataFrame(rows, columns=['depth', 'start', 'end', 'duration', 'call_node', 'name'])


def flame_graph_to_dataframe(flame_graph_timing: Sequence[FlameGraphRow],
                             call_node_info: CallNodeInfo, func_table: FuncTable) -> pd.DataFrame:
    """将火焰图每层的区间展开为一行"""
    funcs = call_node_info.call_node_table.func
    rows = []
    for depth, row in enumerate(flame_graph_timing):
        for i in range(row.length):
            call_node_index = row.call_node[i]
            rows.append({
                'depth': depth,
                'start': row.start[i],
                'end': row.end[i],
                'self_relative': row.self_relative[i],
                'call_node': call_node_index,
                'name': func_table.name[funcs[call_node_index]],
            })
    return pd.DataFrame(rows, columns=['depth', 'start', 'end', 'self_relative', 'call_node', 'name'])


def dataframe_to_markdown(df: pd.DataFrame) -> str:
    """生成 markdown 表格 (不依赖 tabulate)"""
    if df.empty:
        return ''
    header = '| ' + ' | '.join(str(column) for column in df.columns) + ' |'
    separator = '| ' + ' | '.join('---' for _ in df.columns) + ' |'
    lines = [header, separator]
    for values in df.itertuples(index=False):
        cells = []
        for value in values:
            if isinstance(value, float):
                cells.append(f"{value:.3f}")
            else:
                cells.append(str(value))
        lines.append('| ' + ' | '.join(cells) + ' |')
    return '\n'.join(lines)


def write_outputs(df: pd.DataFrame, output_dir: str, base_name: str,
                  output_formats: Sequence[str] = SUPPORTED_OUTPUT_FORMATS) -> List[Path]:
    """
    写出 JSON 和 Excel 文件

    Args:
        df: 数据表
        output_dir: 输出目录
        base_name: 基础文件名
        output_formats: 输出格式，支持 json / xlsx

    Returns:
        List[Path]: 生成的文件路径列表
    """
    for output_format in output_formats:
        if output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise ValueError(f"不支持的输出格式: {output_format}")

    if df.empty:
        logger.warning(f"{base_name}: 没有数据可供导出")
        return []

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    files = []

    if 'json' in output_formats:
        json_file = output_path / f"{base_name}.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(df.to_dict(orient='records'), f, ensure_ascii=False, indent=2)
        files.append(json_file)
        logger.info(f"生成 JSON 文件: {json_file}")

    if 'xlsx' in output_formats:
        excel_file = output_path / f"{base_name}.xlsx"
        df.to_excel(excel_file, index=False, engine='openpyxl')
        files.append(excel_file)
        logger.info(f"生成 Excel 文件: {excel_file}")

    return files
