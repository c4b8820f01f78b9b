import asyncio
import random
import unittest

from heap_ops import InvalidRangeError
from visual_heap import VisualMaxHeap, ordinal


def build(values, **kwargs):
    heap = VisualMaxHeap(step_delay=0, **kwargs)
    for v in values:
        heap.insert(v)
    return heap


class InsertTrackingTest(unittest.TestCase):

    def test_impacted_records_both_indices_of_every_swap(self):
        heap = build([3, 2, 1])
        heap.insert(5)
        state = heap.get_current_state()
        self.assertEqual(state.values, [5, 3, 1, 2])
        self.assertEqual(state.impacted_nodes, {0, 1, 3})
        self.assertEqual(state.new_value, 5)

    def test_impacted_is_rebuilt_per_insert(self):
        heap = build([3, 2, 1, 5, 6, 4])
        state = heap.get_current_state()
        self.assertEqual(state.values, [6, 5, 4, 2, 3, 1])
        self.assertEqual(state.impacted_nodes, {2, 5})
        self.assertEqual(state.new_value, 4)

        heap.insert(0)
        self.assertEqual(heap.get_current_state().impacted_nodes, set())

    def test_impacted_within_bounds(self):
        rng = random.Random(7)
        heap = VisualMaxHeap(step_delay=0)
        for _ in range(60):
            heap.insert(rng.randint(0, 99))
            impacted = heap.get_current_state().impacted_nodes
            self.assertTrue(all(0 <= i < heap.size for i in impacted))
            self.assertTrue(heap.is_valid_heap())

    def test_state_is_a_copy(self):
        heap = build([4, 8])
        state = heap.get_current_state()
        state.values.append(100)
        state.impacted_nodes.add(42)
        again = heap.get_current_state()
        self.assertEqual(again.values, [8, 4])
        self.assertEqual(again.impacted_nodes, {0, 1})
        self.assertIsNot(state.values, again.values)


class ExtractTrackingTest(unittest.TestCase):

    def test_extract_tracks_downward_swaps(self):
        heap = build([3, 2, 1, 5, 6, 4])
        self.assertEqual(heap.extract_max(), 6)
        state = heap.get_current_state()
        self.assertEqual(state.values, [5, 3, 4, 2, 1])
        self.assertEqual(state.impacted_nodes, {0, 1, 4})
        self.assertEqual(state.new_value, 4)
        self.assertTrue(heap.can_undo())

    def test_extract_keeps_last_inserted_value(self):
        heap = build([3, 7, 5])
        self.assertEqual(heap.extract_max(), 7)
        self.assertEqual(heap.get_current_state().new_value, 5)

        heap.extract_max()
        heap.extract_max()
        self.assertEqual(heap.size, 0)
        self.assertEqual(heap.get_current_state().new_value, 5)

    def test_left_child_wins_tie(self):
        heap = build([9, 5, 5, 1])
        heap.extract_max()
        state = heap.get_current_state()
        self.assertEqual(state.values, [5, 1, 5])
        self.assertEqual(state.impacted_nodes, {0, 1})

    def test_extract_empty_returns_none_without_history(self):
        heap = VisualMaxHeap(step_delay=0)
        self.assertIsNone(heap.extract_max())
        self.assertFalse(heap.can_undo())

    def test_extract_yields_descending(self):
        values = [3, 2, 3, 1, 2, 4, 5, 5, 6]
        heap = build(values)
        out = [heap.extract_max() for _ in values]
        self.assertEqual(out, sorted(values, reverse=True))
        self.assertEqual(heap.size, 0)


class HistoryTest(unittest.TestCase):

    def test_undo_restores_previous_state_verbatim(self):
        heap = build([3, 2, 1, 5, 6, 4])
        heap.undo()
        state = heap.get_current_state()
        self.assertEqual(state.values, [6, 5, 1, 2, 3])
        self.assertEqual(state.impacted_nodes, {0, 1, 4})
        self.assertEqual(state.new_value, 6)
        self.assertTrue(heap.can_redo())

    def test_undo_redo_round_trip(self):
        heap = build([7, 1, 9, 4, 4, 12])
        before = heap.get_current_state()
        heap.undo()
        heap.redo()
        after = heap.get_current_state()
        self.assertEqual(after.values, before.values)
        self.assertEqual(after.impacted_nodes, before.impacted_nodes)
        self.assertEqual(after.new_value, before.new_value)

    def test_undo_all_the_way_back(self):
        heap = build([1, 2, 3])
        for _ in range(3):
            heap.undo()
        self.assertEqual(heap.values, [])
        self.assertFalse(heap.can_undo())
        heap.undo()
        self.assertEqual(heap.values, [])

    def test_redo_empty_is_noop(self):
        heap = build([1, 2])
        heap.redo()
        self.assertEqual(heap.values, [2, 1])

    def test_insert_clears_redo(self):
        heap = build([1, 2, 3])
        heap.undo()
        heap.undo()
        self.assertTrue(heap.can_redo())
        heap.insert(10)
        self.assertFalse(heap.can_redo())

    def test_undo_extract(self):
        heap = build([3, 2, 1, 5, 6, 4])
        heap.extract_max()
        heap.undo()
        self.assertEqual(heap.values, [6, 5, 4, 2, 3, 1])
        self.assertEqual(heap.get_current_state().new_value, 4)

    def test_history_limit(self):
        heap = build([1, 2, 3, 4], history_limit=2)
        heap.undo()
        heap.undo()
        self.assertFalse(heap.can_undo())
        self.assertEqual(heap.values, [2, 1])

    def test_reset(self):
        heap = build([1, 2, 3])
        heap.undo()
        heap.reset()
        state = heap.get_current_state()
        self.assertEqual(state.values, [])
        self.assertEqual(state.impacted_nodes, set())
        self.assertIsNone(state.new_value)
        self.assertFalse(heap.can_undo())
        self.assertFalse(heap.can_redo())


class StepsTest(unittest.TestCase):

    def test_ordinal(self):
        self.assertEqual([ordinal(i) for i in (1, 2, 3, 4, 11, 12, 13, 21, 22, 101)],
                         ["1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "101st"])

    def test_step_events(self):
        heap = build([3, 2, 1, 5, 6, 4])
        events = list(heap.iter_nth_largest_steps(2))

        self.assertEqual([e.kind for e in events], ["remove", "found", "done"])
        self.assertEqual([e.message for e in events], [
            "Removing 1st largest element: 6",
            "Found 2nd largest element: 5",
            "Completed in 2 operations",
        ])
        self.assertEqual(events[0].values, (5, 3, 4, 2, 1))
        self.assertEqual(events[0].impacted, frozenset({0, 1, 4}))
        self.assertEqual(events[1].values, (4, 3, 1, 2))
        self.assertEqual(events[1].impacted, frozenset({0, 2}))
        self.assertEqual(events[1].value, 5)

    def test_steps_validate_eagerly(self):
        heap = build([1, 2, 3])
        with self.assertRaises(InvalidRangeError):
            heap.iter_nth_largest_steps(0)
        with self.assertRaises(InvalidRangeError):
            heap.iter_nth_largest_steps(4)

    def test_steps_use_copy_taken_at_call(self):
        heap = build([1, 2, 3])
        steps = heap.iter_nth_largest_steps(1)
        heap.insert(100)
        self.assertEqual(next(steps).value, 3)


class FindNthLargestTest(unittest.IsolatedAsyncioTestCase):

    async def test_examples(self):
        heap = build([3, 2, 1, 5, 6, 4])
        self.assertEqual(await heap.find_nth_largest(2), 5)

        heap = build([3, 2, 3, 1, 2, 4, 5, 5, 6])
        self.assertEqual(await heap.find_nth_largest(4), 4)

    async def test_matches_sorting(self):
        rng = random.Random(99)
        values = [rng.randint(-100, 100) for _ in range(25)]
        heap = build(values)
        ordered = sorted(values, reverse=True)
        self.assertEqual(await heap.find_nth_largest(1), max(values))
        self.assertEqual(await heap.find_nth_largest(len(values)), min(values))
        for n in (2, 7, 13):
            self.assertEqual(await heap.find_nth_largest(n), ordered[n - 1])

    async def test_narration(self):
        heap = build([3, 2, 1, 5, 6, 4])
        messages = []
        heap.set_step_callback(messages.append)
        await heap.find_nth_largest(3)
        self.assertEqual(messages, [
            "Removing 1st largest element: 6",
            "Removing 2nd largest element: 5",
            "Found 3rd largest element: 4",
            "Completed in 3 operations",
        ])

        messages.clear()
        heap.set_step_callback(None)
        await heap.find_nth_largest(1)
        self.assertEqual(messages, [])

    async def test_failing_callback_is_ignored(self):
        heap = build([1, 2, 3])

        def broken(message):
            raise RuntimeError("sink is down")

        heap.set_step_callback(broken)
        with self.assertLogs("visual_heap", level="DEBUG") as logs:
            self.assertEqual(await heap.find_nth_largest(2), 2)

        failures = [r for r in logs.records if r.msg.startswith("Step callback failed")]
        self.assertEqual(len(failures), 3)
        self.assertEqual(
            failures[0].getMessage(),
            "Step callback failed for message 'Removing 1st largest element: 3': sink is down",
        )
        self.assertEqual(failures[0].args[0], "Removing 1st largest element: 3")
        self.assertIsNotNone(failures[0].exc_info)

    async def test_query_leaves_state_untouched(self):
        heap = build([3, 2, 1, 5, 6, 4])
        before = heap.get_current_state()
        await heap.find_nth_largest(5)
        after = heap.get_current_state()
        self.assertEqual(after, before)
        self.assertTrue(heap.can_undo())
        self.assertFalse(heap.can_redo())

    async def test_invalid_n(self):
        heap = build([1, 2, 3])
        for n in (0, heap.size + 1, "2"):
            with self.assertRaises(InvalidRangeError):
                await heap.find_nth_largest(n)

    async def test_cancel_mid_flight(self):
        heap = build([5, 9, 1, 7])
        heap.step_delay = 10
        messages = []
        heap.set_step_callback(messages.append)

        task = asyncio.ensure_future(heap.find_nth_largest(3))
        await asyncio.sleep(0)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertEqual(messages, ["Removing 1st largest element: 9"])
        self.assertEqual(heap.values, [9, 7, 1, 5])


if __name__ == "__main__":
    unittest.main()
