import unittest

from apps.desktop.ui.background import run_in_background


class TestRunInBackground(unittest.TestCase):
    def test_result_is_delivered(self) -> None:
        delivered: list = []
        thread = run_in_background("status-refresh", lambda: "Monitoring started", delivered.append)
        thread.join(timeout=2)
        self.assertFalse(thread.is_alive())
        self.assertTrue(thread.daemon)
        self.assertEqual(delivered, ["Monitoring started"])

    def test_failing_work_delivers_nothing(self) -> None:
        delivered: list = []

        def work():
            raise RuntimeError("lock still held")

        with self.assertLogs("apps.desktop.ui.background", level="ERROR") as logs:
            thread = run_in_background("check-now", work, delivered.append)
            thread.join(timeout=2)
        self.assertEqual(delivered, [])
        self.assertIn("check-now failed", logs.output[0])


if __name__ == "__main__":
    unittest.main()
