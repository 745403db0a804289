import unittest

from radar.aggregate import (
    aggregate_points,
    assign_counters,
    classify_journals,
    flatten_row,
    flatten_rows,
    normalize_coded_row,
    sort_by_source_title,
    transform_snapshot,
)
from radar.config import FLAG_KEYS, OTHER_JOURNALS


def _paper(code, source="Journal A", year=2018, cites=None, group="SustainabMarketing", authors="Doe|Roe"):
    paper = {
        "Code": code,
        "Authors": authors,
        "Abstract": "An abstract",
        "Title": "A title",
        "Link": f"https://example.org/{code}",
        "Source title": source,
        "Year": str(year),
        "sourceFile": group,
    }
    if cites is not None:
        paper["citationCount"] = cites
    return paper


def _row(code, sp, *flags):
    row = {"Code": code, "SP": sp}
    for key in FLAG_KEYS:
        row[key] = 1 if key in flags else 0
    return row


class FlattenUnitTests(unittest.TestCase):
    def test_one_point_per_set_flag(self):
        points = flatten_row(_row("P1", "3", "Cons_Env", "Busi_Prof", "Inst_Gro"))

        self.assertEqual(len(points), 3)
        self.assertEqual(
            [(p.topic, p.category) for p in points],
            [("Consumers", "Environment"), ("Businesses", "Self-Profit-Growth"), ("Institutions", "Self-Profit-Growth")],
        )
        self.assertTrue(all(p.unit_id == "P1" and p.value == 3.0 for p in points))

    def test_zero_and_missing_flags_are_skipped(self):
        row = {"Code": "P1", "SP": 2, "Cons_Self": 0, "Cons_Soc": 1}

        points = flatten_row(row)

        self.assertEqual([(p.topic, p.category) for p in points], [("Consumers", "Society")])

    def test_unknown_fragments_pass_through(self):
        points = flatten_row({"Code": "P1", "SP": 2, "Bus_Xyz": 1, "Foo_Env": 1}, keys=("Bus_Xyz", "Foo_Env"))

        self.assertEqual([(p.topic, p.category) for p in points], [("Businesses", "Xyz"), ("Foo", "Environment")])

    def test_normalize_coded_row_maps_headers_and_yes_no(self):
        row = normalize_coded_row(
            {
                "Code": "P9",
                "Are Consumers Environmentally-Oriented in this article?": "Yes",
                "Are Businesses Profit-Oriented in this article?": "No",
                "What is the Scope of Sustainability in this article?": "4",
            }
        )

        self.assertEqual(row, {"Code": "P9", "Cons_Env": 1, "Busi_Prof": 0, "SP": "4"})
        self.assertEqual(len(flatten_rows([row])), 1)


class AggregateUnitTests(unittest.TestCase):
    def test_mean_scope_per_group(self):
        flat = flatten_rows([_row("P1", 2, "Cons_Env"), _row("P1", 4, "Cons_Env"), _row("P1", 5, "Busi_Soc")])

        points = aggregate_points(flat, [_paper("P1")])

        by_entity = {p.entity: p for p in points}
        self.assertEqual(by_entity["P1-Consumers-Environment"].value, 3.0)
        self.assertEqual(by_entity["P1-Businesses-Society"].value, 5.0)

    def test_non_numeric_scope_values_are_ignored_in_mean(self):
        flat = flatten_rows([_row("P1", 2, "Cons_Env"), _row("P1", "n/a", "Cons_Env")])

        points = aggregate_points(flat, [_paper("P1")])

        self.assertEqual(points[0].value, 2.0)

    def test_group_without_paper_is_dropped(self):
        flat = flatten_rows([_row("P1", 3, "Cons_Env"), _row("P2", 3, "Cons_Env")])

        points = aggregate_points(flat, [_paper("P1")])

        self.assertEqual([p.unit_id for p in points], ["P1"])

    def test_out_of_domain_or_missing_scope_is_rejected(self):
        flat = flatten_rows([_row("P1", 7, "Cons_Env"), _row("P2", "", "Cons_Env"), _row("P3", 0.5, "Cons_Env")])

        points = aggregate_points(flat, [_paper("P1"), _paper("P2"), _paper("P3")])

        self.assertEqual(points, [])

    def test_citation_weight_defaults(self):
        flat = flatten_rows([_row(c, 3, "Cons_Env") for c in ("P1", "P2", "P3", "P4")])
        papers = [_paper("P1"), _paper("P2", cites="n/a"), _paper("P3", cites=0), _paper("P4", cites="25")]

        counts = {p.unit_id: p.count for p in aggregate_points(flat, papers)}

        self.assertEqual(counts, {"P1": 10.0, "P2": 10.0, "P3": 10.0, "P4": 25.0})

    def test_paper_fields_and_opacity(self):
        flat = flatten_rows([_row("P1", 3, "Cons_Env"), _row("P2", 3, "Cons_Env")])
        papers = [_paper("P1", authors="Doe, J.|Roe, K."), _paper("P2", group="Sustainab")]

        points = {p.unit_id: p for p in aggregate_points(flat, papers)}

        self.assertEqual(points["P1"].label, "Doe, J.,Roe, K.")
        self.assertEqual(points["P1"].year, 2018.0)
        self.assertEqual(points["P1"].opacity, 1.0)
        self.assertEqual(points["P2"].opacity, 0.5)

    def test_first_paper_record_wins(self):
        flat = flatten_rows([_row("P1", 3, "Cons_Env")])

        points = aggregate_points(flat, [_paper("P1", source="First"), _paper("P1", source="Second")])

        self.assertEqual(points[0].sourcetitle, "First")


class JournalAndCounterUnitTests(unittest.TestCase):
    def _points(self, sources):
        rows = [_row(f"P{i}", 3, "Cons_Env") for i in range(len(sources))]
        papers = [_paper(f"P{i}", source=s) for i, s in enumerate(sources)]
        return aggregate_points(flatten_rows(rows), papers)

    def test_top_journals_and_other_bucket(self):
        sources = ["J1"] * 3 + ["J2"] * 2 + [f"Solo{i}" for i in range(8)]
        points = self._points(sources)

        top = classify_journals(points, top_n=8)

        self.assertEqual(top[:2], ["J1", "J2"])
        # Ties keep discovery order.
        self.assertEqual(top[2:], [f"Solo{i}" for i in range(6)])
        colors = {p.sourcetitle: p.color for p in points}
        self.assertEqual(colors["Solo7"], OTHER_JOURNALS)
        self.assertEqual(colors["J1"], "J1")

    def test_classification_is_idempotent(self):
        points = self._points(["B", "A", "A", "C", "B", "A"] + [f"X{i}" for i in range(10)])

        first = classify_journals(points)
        first_colors = [p.color for p in points]
        second = classify_journals(points)

        self.assertEqual(first, second)
        self.assertEqual(first_colors, [p.color for p in points])

    def test_counters_follow_source_title_order(self):
        points = self._points(["Zeta Journal", "Alpha Journal", "Mid Journal"])

        ordered = assign_counters(sort_by_source_title(points))

        self.assertEqual([p.sourcetitle for p in ordered], ["Alpha Journal", "Mid Journal", "Zeta Journal"])
        self.assertEqual([p.counter for p in ordered], [1, 2, 3])

    def test_counters_are_contiguous_per_cell(self):
        rows = [
            _row("P1", 3, "Cons_Env", "Busi_Soc"),
            _row("P2", 3, "Cons_Env"),
            _row("P3", 2, "Cons_Env", "Busi_Soc"),
            _row("P4", 3, "Busi_Soc"),
            _row("P5", 3, "Cons_Env"),
        ]
        papers = [_paper(f"P{i}", source=f"J{6 - i}") for i in range(1, 6)]

        result = transform_snapshot({"papers": papers, "scores": rows})

        cells = {}
        for p in result["data"]:
            cells.setdefault((p.topic, p.category, p.value), []).append(p.counter)
        for counters in cells.values():
            self.assertEqual(counters, list(range(1, len(counters) + 1)))
        entities = [p.entity for p in result["data"]]
        self.assertEqual(len(entities), len(set(entities)))


class TransformSnapshotUnitTests(unittest.TestCase):
    def test_empty_snapshot_short_circuits(self):
        result = transform_snapshot({"papers": [], "scores": [], "bibliography": ["Ref 1"]})

        self.assertEqual(result["data"], [])
        self.assertEqual(result["journals"], [])
        self.assertEqual(result["bibliography"], ["Ref 1"])

    def test_output_shape(self):
        snapshot = {
            "papers": [_paper("P1", source="J1"), _paper("P2", source="J2")],
            "scores": [_row("P1", 3, "Cons_Env"), _row("P2", 4, "Inst_Soc")],
            "bibliography": ["Ref"],
            "tooltipContent": {"Actors": ["text"]},
        }

        result = transform_snapshot(snapshot)

        self.assertEqual(len(result["data"]), 2)
        self.assertEqual(result["journals"], ["J1", "J2", OTHER_JOURNALS])
        self.assertEqual(result["tooltipContent"], {"Actors": ["text"]})


if __name__ == "__main__":
    unittest.main()
