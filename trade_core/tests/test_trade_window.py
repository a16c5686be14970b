import unittest

from trade_core.sizing.window import TradeRecord, TradeWindow


class TestTradeWindow(unittest.TestCase):

    def setUp(self):
        self.win = TradeWindow(3)

    def test_push_until_full(self):
        for i in range(3):
            self.assertIsNone(self.win.push(TradeRecord(won=True, pnl=float(i))))
        self.assertTrue(self.win.is_full())
        self.assertEqual(len(self.win), 3)
        self.assertEqual(self.win.capacity(), 3)

    def test_overwrites_oldest_and_keeps_order(self):
        for i in range(5):
            self.win.push(TradeRecord(won=i % 2 == 0, pnl=float(i)))
        self.assertEqual([r.pnl for r in self.win.items()], [2.0, 3.0, 4.0])
        evicted = self.win.push(TradeRecord(won=False, pnl=5.0))
        self.assertEqual(evicted.pnl, 2.0)
        self.assertEqual(len(self.win), 3)

    def test_stats(self):
        self.assertEqual(self.win.win_rate(), 0.0)
        self.assertEqual(self.win.avg_pnl(), 0.0)
        self.win.push(TradeRecord(won=True, pnl=10.0))
        self.win.push(TradeRecord(won=False, pnl=-4.0))
        self.assertAlmostEqual(self.win.win_rate(), 0.5)
        self.assertAlmostEqual(self.win.avg_pnl(), 3.0)

    def test_clear(self):
        self.win.push(TradeRecord(won=True, pnl=1.0))
        self.win.clear()
        self.assertEqual(len(self.win), 0)
        self.assertEqual(self.win.items(), ())

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            TradeWindow(0)


if __name__ == "__main__":
    unittest.main()
