# -*- coding: utf-8 -*-
"""
异常定义
"""


class ProfileViewError(Exception):
    """派生视图计算错误的基类"""


class CapabilityMissingError(ProfileViewError, ValueError):
    """线程缺少某个转换所需的表或列"""


class UnhandledVariantError(ProfileViewError, AssertionError):
    """未处理的枚举取值，属于编程错误"""
