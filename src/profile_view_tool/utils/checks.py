# -*- coding: utf-8 -*-
"""
运行时断言工具
"""

from enum import Enum
from typing import Iterable, Optional, Type, TypeVar

from ..exceptions import CapabilityMissingError, UnhandledVariantError

T = TypeVar('T')
E = TypeVar('E', bound=Enum)


def ensure_exists(value: Optional[T], message: str = '期望的值不存在') -> T:
    """
    确认可选值存在

    Raises:
        CapabilityMissingError: 值为 None
    """
    if value is None:
        raise CapabilityMissingError(message)
    return value


def assert_exhaustive_check(value, message: str = '未处理的枚举取值') -> UnhandledVariantError:
    """
    到达这里说明有枚举取值没有被处理，直接抛出

    返回值只是为了让调用方可以写 ``raise assert_exhaustive_check(x)``
    """
    raise UnhandledVariantError(f"{message}: {value!r}")


def coerce_variant(enum_type: Type[E], value) -> E:
    """将字符串或枚举成员转换为 enum_type 的成员，无法识别时视为编程错误"""
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        raise assert_exhaustive_check(value, f"无法识别的 {enum_type.__name__}")


def check_handlers_cover(enum_type: Type[E], handled: Iterable[E], owner: str):
    """确认分派表覆盖了枚举的全部取值"""
    missing = set(enum_type) - set(handled)
    if missing:
        names = ', '.join(sorted(m.value for m in missing))
        raise UnhandledVariantError(f"{owner} 未处理 {enum_type.__name__} 取值: {names}")
