"""
调用树聚合单元测试
"""

import unittest

import numpy as np

from profile_view_tool.call_node_builder import compute_call_node_info
from profile_view_tool.call_tree import (
    compute_call_tree_counts_and_timings,
    get_call_tree,
    get_row_weights,
)
from profile_view_tool.models import NativeAllocationsTable, ROOT_PREFIX, SamplesTable, SummaryStrategy
from profile_view_tool.allocations import filter_to_deallocations_sites

from profile_fixtures import CATEGORIES, build_thread


def _info(thread):
    return compute_call_node_info(thread.stack_table, thread.frame_table, thread.func_table, 0)


def _names(call_tree, call_nodes):
    return [call_tree.get_node_data(i).func_name for i in call_nodes]


class TestCallTreeCountsAndTimings(unittest.TestCase):

    def setUp(self):
        self.thread = build_thread(['A;B', 'A;B', 'A;C'])
        self.info = _info(self.thread)

    def test_self_and_total(self):
        counts = compute_call_tree_counts_and_timings(self.thread.samples, self.info, 1.0, False)
        np.testing.assert_array_equal(counts.call_node_self, [0, 2, 1])
        np.testing.assert_array_equal(counts.call_node_self_count, [0, 2, 1])
        np.testing.assert_array_equal(counts.call_node_total_summary, [3, 2, 1])
        np.testing.assert_array_equal(counts.call_node_total_count, [3, 2, 1])
        np.testing.assert_array_equal(counts.call_node_child_count, [2, 0, 0])
        self.assertEqual(counts.root_total_summary, 3.0)
        self.assertEqual(counts.root_count, 1)
        self.assertFalse(counts.inverted)
        self.assertIs(counts.call_node_info, self.info)

    def test_total_is_self_plus_children(self):
        thread = build_thread(['A', 'A;B;C', 'A;B', 'D;E', 'A;B;C'])
        counts = compute_call_tree_counts_and_timings(thread.samples, _info(thread), 1.0, False)
        table = counts.call_node_info.call_node_table
        for call_node_index in range(table.length):
            children_total = sum(
                counts.call_node_total_summary[child]
                for child in range(table.length) if table.prefix[child] == call_node_index
            )
            self.assertEqual(counts.call_node_total_summary[call_node_index],
                             counts.call_node_self[call_node_index] + children_total)
        roots_total = sum(counts.call_node_total_summary[i]
                          for i in range(table.length) if table.prefix[i] == ROOT_PREFIX)
        self.assertEqual(counts.root_total_summary, roots_total)
        self.assertEqual(counts.root_total_summary, 5.0)

    def test_interval_scales_timing(self):
        counts = compute_call_tree_counts_and_timings(self.thread.samples, self.info, 0.5, False)
        self.assertEqual(counts.root_total_summary, 1.5)

    def test_samples_without_stack_are_ignored(self):
        thread = build_thread(['A', None, 'A'])
        counts = compute_call_tree_counts_and_timings(thread.samples, _info(thread), 1.0, False)
        self.assertEqual(counts.root_total_summary, 2.0)

    def test_inverted(self):
        counts = compute_call_tree_counts_and_timings(self.thread.samples, self.info, 1.0, True)
        self.assertTrue(counts.inverted)
        self.assertIsNot(counts.call_node_info, self.info)
        self.assertEqual(counts.root_total_summary, 3.0)
        self.assertEqual(counts.root_count, 2)

        call_tree = get_call_tree(self.thread, CATEGORIES, 'combined', counts, SummaryStrategy.TIMING)
        self.assertTrue(call_tree.inverted)
        roots = call_tree.get_roots()
        self.assertEqual(_names(call_tree, roots), ['B', 'C'])
        self.assertEqual([call_tree.get_node_data(i).total for i in roots], [2.0, 1.0])
        self.assertEqual(_names(call_tree, call_tree.get_children(roots[0])), ['A'])


class TestRowWeights(unittest.TestCase):

    def test_no_weight_column(self):
        samples = SamplesTable(stack=[0, 0], time=[0.0, 1.0])
        np.testing.assert_array_equal(get_row_weights(samples, 2.0), [2.0, 2.0])

    def test_sample_weights_are_scaled(self):
        samples = SamplesTable(stack=[0, 0], time=[0.0, 1.0], weight=[2, 1], weight_type='samples')
        np.testing.assert_array_equal(get_row_weights(samples, 0.5), [1.0, 0.5])

    def test_tracing_weights_are_raw(self):
        samples = SamplesTable(stack=[0, 0], time=[0.0, 1.0], weight=[3.5, 1.0], weight_type='tracing-ms')
        np.testing.assert_array_equal(get_row_weights(samples, 0.5), [3.5, 1.0])

    def test_allocation_weights_are_raw(self):
        table = NativeAllocationsTable(stack=[0], time=[0.0], weight=[4096])
        np.testing.assert_array_equal(get_row_weights(table, 0.5), [4096.0])


class TestCallTree(unittest.TestCase):

    def setUp(self):
        self.thread = build_thread(['A;B', 'A;B', 'A;C'], categories_by_func={'B': 2})
        self.counts = compute_call_tree_counts_and_timings(self.thread.samples, _info(self.thread), 1.0, False)
        self.call_tree = get_call_tree(self.thread, CATEGORIES, 'combined', self.counts, SummaryStrategy.TIMING)

    def test_roots_and_children_sorted_by_total(self):
        roots = self.call_tree.get_roots()
        self.assertEqual(roots, [0])
        self.assertEqual(_names(self.call_tree, self.call_tree.get_children(0)), ['B', 'C'])
        self.assertTrue(self.call_tree.has_children(0))
        self.assertFalse(self.call_tree.has_children(1))
        self.assertEqual(self.call_tree.get_parent(1), 0)
        self.assertEqual(self.call_tree.get_depth(1), 1)
        self.assertEqual(self.call_tree.get_call_node_path(2), (0, 2))

    def test_children_cached(self):
        self.assertIs(self.call_tree.get_children(0), self.call_tree.get_children(0))

    def test_zero_total_nodes_hidden(self):
        # A;C 只出现在分配表中，采样中没有对应样本
        thread = build_thread(['A;B'], js_allocations=[('A;C', 5)])
        counts = compute_call_tree_counts_and_timings(thread.samples, _info(thread), 1.0, False)
        call_tree = get_call_tree(thread, CATEGORIES, 'combined', counts, SummaryStrategy.TIMING)
        self.assertEqual(_names(call_tree, call_tree.get_children(0)), ['B'])

    def test_node_data(self):
        data = self.call_tree.get_node_data(1)
        self.assertEqual(data.func_name, 'B')
        self.assertEqual(data.total, 2.0)
        self.assertAlmostEqual(data.total_relative, 2 / 3)
        self.assertEqual(data.self_time, 2.0)
        self.assertEqual(data.total_count, 2)
        self.assertEqual(data.self_count, 2)

    def test_display_data(self):
        display = self.call_tree.get_display_data(1)
        self.assertEqual(display['name'], 'B')
        self.assertEqual(display['total'], '2.0ms')
        self.assertEqual(display['total_percent'], '66.7%')
        self.assertEqual(display['category_name'], 'Layout')
        self.assertEqual(display['lib'], 'libxul.so')
        self.assertEqual(display['implementation'], 'combined')
        self.assertEqual(display['depth'], 1)
        self.assertEqual(self.call_tree.get_display_data(0)['self'], '-')

    def test_iter_rows_depth_first(self):
        rows = list(self.call_tree.iter_rows())
        self.assertEqual([row['name'] for row in rows], ['A', 'B', 'C'])
        self.assertEqual([row['depth'] for row in rows], [0, 1, 1])
        self.assertEqual(len(list(self.call_tree.iter_rows(max_depth=0))), 1)

    def test_deallocation_sites_sorted_by_magnitude(self):
        thread = build_thread(['A'], native_allocations=[('A;B', -10), ('A;C', -30)])
        rows = filter_to_deallocations_sites(thread.native_allocations)
        counts = compute_call_tree_counts_and_timings(rows, _info(thread), 1.0, False)
        call_tree = get_call_tree(thread, CATEGORIES, 'combined', counts,
                                  SummaryStrategy.NATIVE_DEALLOCATIONS_SITES)
        self.assertEqual(counts.root_total_summary, -40.0)
        root = call_tree.get_roots()[0]
        self.assertEqual(_names(call_tree, call_tree.get_children(root)), ['C', 'B'])
        self.assertEqual(call_tree.get_display_data(root)['total'], '-40B')

    def test_bytes_formatting(self):
        thread = build_thread(['A'], native_allocations=[('A', 2048)])
        counts = compute_call_tree_counts_and_timings(thread.native_allocations, _info(thread), 1.0, False)
        call_tree = get_call_tree(thread, CATEGORIES, 'combined', counts, SummaryStrategy.NATIVE_ALLOCATIONS)
        self.assertEqual(call_tree.get_display_data(0)['total'], '2.0KB')

    def test_empty_thread(self):
        thread = build_thread([])
        counts = compute_call_tree_counts_and_timings(thread.samples, _info(thread), 1.0, False)
        call_tree = get_call_tree(thread, CATEGORIES, 'combined', counts, SummaryStrategy.TIMING)
        self.assertEqual(call_tree.get_roots(), [])
        self.assertEqual(call_tree.root_total, 0.0)


if __name__ == '__main__':
    unittest.main()
