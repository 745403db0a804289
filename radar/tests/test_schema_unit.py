import math
import unittest

from radar.schema import DataPoint, PaperRecord, clean_category, clean_section, clean_topic, make_entity, to_number


class SchemaUnitTests(unittest.TestCase):
    def test_aliases_and_passthrough(self):
        self.assertEqual(clean_topic("Busi"), "Businesses")
        self.assertEqual(clean_category("Gro"), "Self-Profit-Growth")
        self.assertEqual(clean_category("Env"), "Environment")
        self.assertEqual(clean_section("D"), "Discussion")
        self.assertEqual(clean_topic("Mystery"), "Mystery")
        self.assertEqual(make_entity("P1", "Consumers", "Society"), "P1-Consumers-Society")

    def test_to_number(self):
        self.assertEqual(to_number(" 3 "), 3.0)
        self.assertEqual(to_number(4), 4.0)
        for value in (None, "", "n/a", True):
            self.assertTrue(math.isnan(to_number(value)), value)

    def test_paper_record_from_raw(self):
        record = PaperRecord.from_raw({
            "Code": 17,
            "Authors": "Doe, J.| Roe, R.",
            "Source title": "Journal of Marketing",
            "Year": "2019",
            "sourceFile": "NewPaper",
        })

        self.assertEqual(record.code, "17")
        self.assertEqual(record.authors, "Doe, J., Roe, R.")
        self.assertEqual(record.year, 2019.0)
        self.assertTrue(math.isnan(record.citation_count))

    def test_paper_record_requires_code(self):
        with self.assertRaises(ValueError):
            PaperRecord.from_raw({"Authors": "Doe"})
        with self.assertRaises(ValueError):
            PaperRecord.from_raw(["not", "a", "dict"])

    def test_to_dict_normalises_year(self):
        p = DataPoint(unit_id="P1", topic="Consumers", category="Society", value=2.0, year=2020.0)

        self.assertEqual(p.to_dict()["year"], 2020)
        self.assertIsNone(DataPoint(unit_id="P1", topic="Consumers", category="Society", value=2.0, year=float("nan")).to_dict()["year"])


if __name__ == "__main__":
    unittest.main()
