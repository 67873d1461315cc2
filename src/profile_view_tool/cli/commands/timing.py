"""
时间图命令模块 (栈时间图 + 火焰图)
"""

import time

from ...exceptions import ProfileViewError
from ...presenter import (
    dataframe_to_markdown,
    flame_graph_to_dataframe,
    stack_timing_to_dataframe,
    write_outputs,
)
from ..session_utils import open_session
from ..validators import parse_output_formats


class TimingCommand:
    """时间图命令处理器"""

    def run(self, args) -> int:
        """输出某个线程的栈时间图和火焰图布局"""
        print(f"=== 时间图 ===")
        print(f"文件: {args.file}")
        print(f"线程: {args.thread}")
        print(f"汇总策略: {args.strategy}")
        print(f"输出格式: {args.output_format}")
        print(f"输出目录: {args.output_dir}")
        print()

        try:
            output_formats = parse_output_formats(args.output_format)
        except ValueError as e:
            print(f"错误: 输出格式解析失败 - {e}")
            return 1

        session = None
        try:
            start_time = time.time()
            session = open_session(args)
            selectors = session.for_thread(args.thread)
            state = session.state
            func_table = state.profile.threads[args.thread].func_table
            call_node_info = selectors.get_call_node_info()

            samples_range = selectors.unfiltered_samples_range()
            if samples_range is not None:
                print(f"样本时间范围: {samples_range.start} - {samples_range.end}")
            print(f"最大调用深度: {selectors.get_call_node_max_depth()}")

            stack_df = stack_timing_to_dataframe(
                selectors.get_stack_timing_by_depth(), call_node_info, func_table
            )
            flame_df = flame_graph_to_dataframe(
                selectors.get_flame_graph_timing(), call_node_info, func_table
            )

            files = write_outputs(stack_df, args.output_dir, f"stack_timing_thread{args.thread}", output_formats)
            files += write_outputs(flame_df, args.output_dir, f"flame_graph_thread{args.thread}", output_formats)
            for file_path in files:
                print(f"已生成: {file_path}")

            if args.print_markdown:
                print("\n栈时间图:")
                print(dataframe_to_markdown(stack_df))
                print("\n火焰图:")
                print(dataframe_to_markdown(flame_df))

            print(f"\n完成，耗时 {time.time() - start_time:.2f} 秒")
            return 0
        except (FileNotFoundError, ProfileViewError, ValueError, IndexError) as e:
            print(f"错误: {e}")
            return 1
        finally:
            if session is not None:
                session.close()
