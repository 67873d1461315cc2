"""
CLI主模块
"""

import argparse
import sys

from ..models import SummaryStrategy
from ..utils.logger_setup import setup_logging
from .commands import CallTreeCommand, TimingCommand


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('file', help='profile 表文件路径 (.json 或 .json.gz)')
    parser.add_argument('--thread', type=int, default=0, help='线程索引 (默认: 0)')
    parser.add_argument('--strategy', default=SummaryStrategy.TIMING.value,
                        help='调用树汇总策略，支持:\n'
                             + ''.join(f'  {strategy.value}\n' for strategy in SummaryStrategy)
                             + '线程不支持时回退到 timing (默认: timing)')
    parser.add_argument('--invert', action='store_true', help='反转调用栈 (默认: False)')
    parser.add_argument('--implementation', default='combined',
                        help='实现过滤: combined, js, cpp (默认: combined)')
    parser.add_argument('--select', type=str, default='',
                        help='选中的调用路径，使用分号分隔的函数名\n'
                             '示例: --select "main;parse;read"')
    parser.add_argument('--print-markdown', action='store_true',
                        help='是否在stdout中以markdown格式打印表格 (默认: False)')
    parser.add_argument('--output-format', default='json,xlsx',
                        choices=['json', 'xlsx', 'json,xlsx'],
                        help='输出格式 (默认: json,xlsx)')
    parser.add_argument('--output-dir', default='.', help='输出目录 (默认: 当前目录)')
    parser.add_argument('--debug', action='store_true', help='输出调试日志 (默认: False)')


def create_parser() -> argparse.ArgumentParser:
    """创建命令行解析器"""
    parser = argparse.ArgumentParser(
        description="Profile View Tool - 计算调用树、栈时间图和火焰图",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例用法:
  # 输出主线程的调用树
  profile-view-tool calltree profile.json --thread 0 --output-format json,xlsx

  # 反转调用栈，只展开前 3 层并打印 markdown 表格
  profile-view-tool calltree profile.json --invert --max-depth 3 --print-markdown

  # 按 native 内存保留量汇总
  profile-view-tool calltree profile.json.gz --strategy native-retained-allocations

  # 输出栈时间图和火焰图布局
  profile-view-tool timing profile.json --thread 1 --output-format json
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # calltree 命令 - 调用树
    calltree_parser = subparsers.add_parser('calltree', help='输出线程的调用树',
                                            formatter_class=argparse.RawTextHelpFormatter)
    _add_common_arguments(calltree_parser)
    calltree_parser.add_argument('--max-depth', type=int, default=None,
                                 help='最大展开深度 (默认: 全部展开)')

    # timing 命令 - 栈时间图与火焰图
    timing_parser = subparsers.add_parser('timing', help='输出线程的栈时间图和火焰图布局',
                                          formatter_class=argparse.RawTextHelpFormatter)
    _add_common_arguments(timing_parser)

    return parser


def main(argv=None):
    """主函数"""
    args = create_parser().parse_args(argv)

    if not args.command:
        print("错误: 请指定命令 (calltree, timing)")
        print("使用 --help 查看帮助信息")
        return 1

    setup_logging(args.debug)

    if args.command == 'calltree':
        command = CallTreeCommand()
        return command.run(args)
    elif args.command == 'timing':
        command = TimingCommand()
        return command.run(args)
    else:
        print(f"错误: 未知命令: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
