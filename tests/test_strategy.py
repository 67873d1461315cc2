"""
调用树汇总策略单元测试
"""

import unittest

from profile_view_tool.exceptions import CapabilityMissingError, UnhandledVariantError
from profile_view_tool.models import DataKind, SummaryStrategy
from profile_view_tool.strategy import get_call_tree_summary_strategy, get_samples_for_call_tree

from profile_fixtures import build_thread

ALLOCATION_STRATEGIES = [strategy for strategy in SummaryStrategy if strategy != SummaryStrategy.TIMING]
NATIVE_STRATEGIES = [strategy for strategy in ALLOCATION_STRATEGIES
                     if strategy != SummaryStrategy.JS_ALLOCATIONS]


class TestSummaryStrategyResolver(unittest.TestCase):

    def setUp(self):
        self.plain = build_thread(['A;B'])
        self.with_js = build_thread(['A;B'], js_allocations=[('A;B', 10)])
        self.with_native = build_thread(['A;B'], native_allocations=[('A;B', 10, 1)])

    def test_capabilities(self):
        self.assertEqual(self.plain.capabilities, frozenset())
        self.assertEqual(self.with_js.capabilities, frozenset({DataKind.JS_ALLOCATIONS}))
        self.assertEqual(self.with_native.capabilities,
                         frozenset({DataKind.NATIVE_ALLOCATIONS, DataKind.NATIVE_MEMORY_ADDRESSES}))

    def test_timing_always_valid(self):
        for thread in (self.plain, self.with_js, self.with_native):
            self.assertEqual(get_call_tree_summary_strategy(thread, SummaryStrategy.TIMING),
                             SummaryStrategy.TIMING)

    def test_every_allocation_strategy_falls_back_without_capability(self):
        for strategy in ALLOCATION_STRATEGIES:
            with self.subTest(strategy=strategy):
                self.assertEqual(get_call_tree_summary_strategy(self.plain, strategy),
                                 SummaryStrategy.TIMING)

    def test_js_strategy(self):
        self.assertEqual(get_call_tree_summary_strategy(self.with_js, SummaryStrategy.JS_ALLOCATIONS),
                         SummaryStrategy.JS_ALLOCATIONS)
        self.assertEqual(get_call_tree_summary_strategy(self.with_native, SummaryStrategy.JS_ALLOCATIONS),
                         SummaryStrategy.TIMING)

    def test_native_strategies(self):
        for strategy in NATIVE_STRATEGIES:
            with self.subTest(strategy=strategy):
                self.assertEqual(get_call_tree_summary_strategy(self.with_native, strategy), strategy)
                self.assertEqual(get_call_tree_summary_strategy(self.with_js, strategy),
                                 SummaryStrategy.TIMING)

    def test_string_values_are_accepted(self):
        self.assertEqual(get_call_tree_summary_strategy(self.with_native, 'native-allocations'),
                         SummaryStrategy.NATIVE_ALLOCATIONS)

    def test_unknown_strategy_is_fatal(self):
        with self.assertRaises(UnhandledVariantError):
            get_call_tree_summary_strategy(self.plain, 'cpu-cycles')
        with self.assertRaises(AssertionError):
            get_samples_for_call_tree(self.plain, 'cpu-cycles')


class TestSamplesForCallTree(unittest.TestCase):

    def test_every_strategy_is_dispatched(self):
        thread = build_thread(
            ['A;B'],
            js_allocations=[('A;B', 10)],
            native_allocations=[('A;B', 10, 1), ('A;C', -10, 1)],
        )
        for strategy in SummaryStrategy:
            with self.subTest(strategy=strategy):
                rows = get_samples_for_call_tree(thread, strategy)
                self.assertEqual(len(rows.stack), len(rows.time))

    def test_timing_returns_samples(self):
        thread = build_thread(['A;B'])
        self.assertIs(get_samples_for_call_tree(thread, SummaryStrategy.TIMING), thread.samples)

    def test_js_allocations_returned_as_is(self):
        thread = build_thread(['A'], js_allocations=[('A', 10), ('A', 20)])
        self.assertIs(get_samples_for_call_tree(thread, SummaryStrategy.JS_ALLOCATIONS),
                      thread.js_allocations)

    def test_missing_table_raises_capability_error(self):
        thread = build_thread(['A'])
        with self.assertRaises(CapabilityMissingError):
            get_samples_for_call_tree(thread, SummaryStrategy.NATIVE_ALLOCATIONS)

    def test_retained_without_addresses(self):
        thread = build_thread(['A'], native_allocations=[('A', 10), ('A', -10)])
        self.assertEqual(get_call_tree_summary_strategy(thread, SummaryStrategy.NATIVE_RETAINED_ALLOCATIONS),
                         SummaryStrategy.NATIVE_RETAINED_ALLOCATIONS)
        with self.assertRaises(CapabilityMissingError):
            get_samples_for_call_tree(thread, SummaryStrategy.NATIVE_RETAINED_ALLOCATIONS)


if __name__ == '__main__':
    unittest.main()
