import unittest

from stuckwatch.contracts.stuck_report import validate_error_payload, validate_stuck_report
from stuckwatch.reports.report_types import StuckItem, StuckReport


class TestStuckReportContract(unittest.TestCase):
    def test_serialized_report_is_valid(self):
        report = StuckReport(total=120, results=[StuckItem("a", "https://x.com", "US")])
        self.assertEqual(validate_stuck_report(report.to_payload()), [])

    def test_empty_report_is_valid(self):
        self.assertEqual(validate_stuck_report({"total": 0, "results": []}), [])

    def test_missing_total(self):
        errors = validate_stuck_report({"results": []})
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith("<root>:"))

    def test_bad_item_reports_its_path(self):
        errors = validate_stuck_report({"total": 1, "results": [{"url": 5}]})
        self.assertTrue(any(e.startswith("results.0.url:") for e in errors))

    def test_sample_larger_than_cap_is_rejected(self):
        payload = {"total": 101, "results": [{"link_yid": str(i), "url": "u"} for i in range(101)]}
        self.assertTrue(validate_stuck_report(payload))

    def test_error_shape(self):
        self.assertEqual(validate_error_payload({"error": "Internal Server Error"}), [])
        self.assertTrue(validate_error_payload({"message": "boom"}))


if __name__ == "__main__":
    unittest.main()
