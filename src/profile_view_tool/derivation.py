# -*- coding: utf-8 -*-
"""
派生计算图（记忆化引擎）

每个节点包装一个纯函数，输入来自 N 个上游选择器。求值时按引用 (is) 比较
每个上游的当前值与上次计算时使用的值：全部相同则直接返回缓存对象，
否则重新计算并替换缓存。求值是惰性的，只有读取时才会重新校验依赖链。
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

Selector = Callable[[Any], Any]

_NOT_COMPUTED = object()


class Derivation:
    """记忆化的派生节点"""

    def __init__(self, input_selectors: Sequence[Selector], combiner: Callable[..., Any],
                 name: Optional[str] = None):
        if not callable(combiner):
            raise TypeError(f"combiner 必须可调用: {combiner!r}")
        for selector in input_selectors:
            if not callable(selector):
                raise TypeError(f"输入选择器必须可调用: {selector!r}")
        self._input_selectors = tuple(input_selectors)
        self._combiner = combiner
        self.name = name or getattr(combiner, '__name__', 'derivation')
        self._last_inputs: Optional[Tuple[Any, ...]] = None
        self._last_result: Any = _NOT_COMPUTED
        self.recomputations = 0

    def __call__(self, state) -> Any:
        inputs = tuple(selector(state) for selector in self._input_selectors)
        if self._last_result is not _NOT_COMPUTED and self._inputs_unchanged(inputs):
            return self._last_result

        # combiner 抛出异常时缓存保持不变，异常原样向上传播
        result = self._combiner(*inputs)
        self._last_inputs = inputs
        self._last_result = result
        self.recomputations += 1
        logger.debug(f"重新计算 {self.name} (第 {self.recomputations} 次)")
        return result

    def _inputs_unchanged(self, inputs: Tuple[Any, ...]) -> bool:
        last_inputs = self._last_inputs
        if last_inputs is None or len(last_inputs) != len(inputs):
            return False
        return all(current is previous for current, previous in zip(inputs, last_inputs))

    @property
    def has_cache(self) -> bool:
        return self._last_result is not _NOT_COMPUTED

    def reset(self):
        """丢弃缓存"""
        self._last_inputs = None
        self._last_result = _NOT_COMPUTED
        self.recomputations = 0


def create_selector(*args, name: Optional[str] = None) -> Derivation:
    """
    创建记忆化选择器，最后一个参数为组合函数

    Example:
        get_total = create_selector(get_a, get_b, lambda a, b: a + b)
    """
    if not args:
        raise TypeError("create_selector 至少需要一个组合函数")
    *input_selectors, combiner = args
    return Derivation(input_selectors, combiner, name=name)


class DerivationGraph:
    """
    单个线程的派生计算图，按名字保存该线程的全部派生节点

    不同线程各自拥有独立的实例，互不影响缓存。
    """

    def __init__(self, key):
        self.key = key
        self._nodes: Dict[str, Selector] = {}

    def add(self, name: str, selector: Selector) -> Selector:
        if name in self._nodes:
            raise ValueError(f"派生节点已存在: {name}")
        if isinstance(selector, Derivation):
            selector.name = f"{self.key}:{name}"
        self._nodes[name] = selector
        return selector

    def get(self, name: str) -> Selector:
        try:
            return self._nodes[name]
        except KeyError:
            raise KeyError(f"线程 {self.key} 没有派生节点: {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def names(self) -> List[str]:
        return list(self._nodes)

    def recomputation_counts(self) -> Dict[str, int]:
        """每个记忆化节点的重新计算次数"""
        return {
            name: node.recomputations
            for name, node in self._nodes.items()
            if isinstance(node, Derivation)
        }
