"""
调用树命令模块
"""

import time

from ...exceptions import ProfileViewError
from ...presenter import call_tree_to_dataframe, dataframe_to_markdown, write_outputs
from ..session_utils import open_session
from ..validators import parse_output_formats


class CallTreeCommand:
    """调用树命令处理器"""

    def run(self, args) -> int:
        """输出某个线程的调用树"""
        print(f"=== 调用树 ===")
        print(f"文件: {args.file}")
        print(f"线程: {args.thread}")
        print(f"汇总策略: {args.strategy}")
        print(f"反转调用栈: {args.invert}")
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

            strategy = selectors.get_call_tree_summary_strategy()
            if strategy.value != args.strategy:
                print(f"警告: 线程不支持 {args.strategy} 策略，已回退到 {strategy.value}")

            call_tree = selectors.get_call_tree()
            df = call_tree_to_dataframe(call_tree, max_depth=args.max_depth)
            print(f"调用树节点数: {len(df)}，根节点总计: {call_tree.root_total}")

            selected = selectors.get_selected_call_node_index()
            if args.select:
                if selected is None:
                    print(f"警告: 调用路径 {args.select} 在当前线程中不存在")
                else:
                    print(f"选中调用节点: {selected}")

            files = write_outputs(df, args.output_dir, f"call_tree_thread{args.thread}", output_formats)
            for file_path in files:
                print(f"已生成: {file_path}")

            if args.print_markdown:
                print()
                print(dataframe_to_markdown(df))

            print(f"\n完成，耗时 {time.time() - start_time:.2f} 秒")
            return 0
        except (FileNotFoundError, ProfileViewError, ValueError, IndexError) as e:
            print(f"错误: {e}")
            return 1
        finally:
            if session is not None:
                session.close()
