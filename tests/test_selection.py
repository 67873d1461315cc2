"""
样本选中状态分类单元测试
"""

import unittest
from functools import cmp_to_key

from profile_view_tool.call_node_builder import compute_call_node_info, get_sample_index_to_call_node_index
from profile_view_tool.models import SelectedState
from profile_view_tool.selection import (
    compute_tree_order,
    get_samples_selected_states,
    get_tree_order_comparator,
)

from profile_fixtures import build_thread

S = SelectedState


class TestSelectedStates(unittest.TestCase):

    def setUp(self):
        # 调用节点: 0=A, 1=A;B, 2=A;C, 3=D
        self.thread = build_thread(['A;B', 'A;C', 'A', 'D'])
        info = compute_call_node_info(self.thread.stack_table, self.thread.frame_table,
                                      self.thread.func_table, 0)
        self.table = info.call_node_table
        self.sample_call_nodes = get_sample_index_to_call_node_index(
            self.thread.samples.stack, info.stack_index_to_call_node_index
        )

    def test_tree_order(self):
        rank, subtree_size = compute_tree_order(self.table)
        self.assertEqual(rank, [0, 1, 2, 3])
        self.assertEqual(subtree_size, [3, 1, 1, 1])

    def test_select_leaf(self):
        states = get_samples_selected_states(self.table, self.sample_call_nodes, self.sample_call_nodes, 1)
        self.assertEqual(states, [
            S.SELECTED,
            S.UNSELECTED_ORDERED_AFTER_SELECTED,
            S.UNSELECTED_ORDERED_BEFORE_SELECTED,
            S.UNSELECTED_ORDERED_AFTER_SELECTED,
        ])

    def test_select_root_covers_subtree(self):
        states = get_samples_selected_states(self.table, self.sample_call_nodes, self.sample_call_nodes, 0)
        self.assertEqual(states, [S.SELECTED, S.SELECTED, S.SELECTED, S.UNSELECTED_ORDERED_AFTER_SELECTED])

    def test_no_selection(self):
        states = get_samples_selected_states(self.table, self.sample_call_nodes, self.sample_call_nodes, None)
        self.assertEqual(states, [S.UNSELECTED_ORDERED_BEFORE_SELECTED] * 4)

    def test_filtered_samples(self):
        sample_call_nodes = [1, None, 0, 3]
        tab_filtered = [1, None, 0, None]
        states = get_samples_selected_states(self.table, sample_call_nodes, tab_filtered, 1)
        self.assertEqual(states, [
            S.SELECTED,
            S.FILTERED_OUT_BY_TRANSFORM,
            S.UNSELECTED_ORDERED_BEFORE_SELECTED,
            S.FILTERED_OUT_BY_TAB,
        ])

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            get_samples_selected_states(self.table, [0, 1], [0], None)

    def test_tree_order_comparator(self):
        comparator = get_tree_order_comparator(self.table, self.sample_call_nodes)
        self.assertEqual(sorted(range(4), key=cmp_to_key(comparator)), [2, 0, 1, 3])
        self.assertEqual(comparator(0, 0), 0)

    def test_comparator_puts_missing_first(self):
        comparator = get_tree_order_comparator(self.table, [3, None, 0])
        self.assertEqual(sorted(range(3), key=cmp_to_key(comparator)), [1, 2, 0])


if __name__ == '__main__':
    unittest.main()
