import unittest

from stuckwatch.reports.filtering import HealthStatus, available_countries, classify_status, filter_by_country
from stuckwatch.reports.report_types import StuckItem, StuckReport


def item(n, country=None):
    return StuckItem(link_yid=f"yid-{n}", url=f"https://example.com/{n}", country_code=country)


class TestClassifyStatus(unittest.TestCase):
    def test_boundaries(self):
        self.assertEqual(classify_status(0), HealthStatus.HEALTHY)
        self.assertEqual(classify_status(1), HealthStatus.WARNING)
        self.assertEqual(classify_status(9), HealthStatus.WARNING)
        self.assertEqual(classify_status(10), HealthStatus.CRITICAL)
        self.assertEqual(classify_status(5000), HealthStatus.CRITICAL)

    def test_value_is_plain_string(self):
        self.assertEqual(classify_status(3).value, "warning")


class TestCountryFilter(unittest.TestCase):
    def setUp(self):
        self.report = StuckReport(total=3, results=[item(1, "US"), item(2, "DE"), item(3, "DE")])

    def test_no_filter_returns_report_unchanged(self):
        self.assertIs(filter_by_country(self.report, None), self.report)
        self.assertIs(filter_by_country(self.report, ""), self.report)
        self.assertIsNone(filter_by_country(None, "DE"))

    def test_filtered_total_counts_matching_rows(self):
        filtered = filter_by_country(self.report, "DE")
        self.assertEqual(filtered.total, 2)
        self.assertEqual([r.link_yid for r in filtered.results], ["yid-2", "yid-3"])

    def test_idempotent(self):
        once = filter_by_country(self.report, "DE")
        twice = filter_by_country(once, "DE")
        self.assertEqual(once, twice)

    def test_match_is_exact(self):
        self.assertEqual(filter_by_country(self.report, "de").total, 0)

    def test_rows_without_country_never_match(self):
        report = StuckReport(total=2, results=[item(1), item(2, "FR")])
        self.assertEqual(filter_by_country(report, "N/A").total, 0)
        self.assertEqual(filter_by_country(report, "FR").total, 1)

    def test_filtered_total_only_sees_the_sample(self):
        # 250 stuck overall but only 100 sampled: the DE count stops at what the sample holds
        sample = [item(i, "DE" if i % 2 else "US") for i in range(100)]
        report = StuckReport(total=250, results=sample)
        filtered = filter_by_country(report, "DE")
        self.assertEqual(filtered.total, 50)
        self.assertTrue(report.truncated)
        self.assertFalse(filtered.truncated)

    def test_available_countries(self):
        report = StuckReport(total=4, results=[item(1, "US"), item(2, "DE"), item(3), item(4, "DE")])
        self.assertEqual(available_countries(report), ["DE", "US"])
        self.assertEqual(available_countries(None), [])


if __name__ == "__main__":
    unittest.main()
