"""
日志配置

库代码只通过 logging.getLogger(__name__) 记录日志，不做任何配置；
命令行入口调用 setup_logging 给包的根 logger 挂上控制台 handler。
"""

import logging
import sys

PACKAGE_LOGGER_NAME = 'profile_view_tool'


def setup_logging(debug_mode: bool = False) -> logging.Logger:
    """
    配置包的根 logger，重复调用不会重复添加 handler

    Args:
        debug_mode: True 时输出 DEBUG 级别日志 (包括每次派生节点重新计算)
    """
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    level = logging.DEBUG if debug_mode else logging.INFO
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if debug_mode:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        formatter = logging.Formatter('%(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    return logger
