import pytest

from core.pricing import bucket_label, bucketize, histogram_to_records, price_buckets, price_series_by_group


def _by_label(hist):
    return {b.label: b for b in hist.bins}


class TestBuckets:
    def test_layout(self):
        buckets = price_buckets()
        assert len(buckets) == 18
        assert buckets[0].label == "Under $30k"
        assert buckets[1].label == "$30k to $34.9k"
        assert buckets[-2].label == "$105k to $109.9k"
        assert buckets[-1].label == "$110k+"

    def test_label_uses_display_fence_post(self):
        assert bucket_label(35_000, 40_000) == "$35k to $39.9k"


class TestBucketize:
    def test_two_prices(self, frame):
        rows = frame([{"FIN_PRICE_UNEDITED": "$29,999"}, {"FIN_PRICE_UNEDITED": "$35,200"}])
        hist = bucketize(rows)
        bins = _by_label(hist)

        assert hist.total_valid == 2
        assert (bins["Under $30k"].count, bins["Under $30k"].pct) == (1, 50.0)
        assert (bins["$35k to $39.9k"].count, bins["$35k to $39.9k"].pct) == (1, 50.0)
        assert sum(b.count for b in hist.bins) == 2

    def test_edges_are_right_open(self, frame):
        rows = frame([{"FIN_PRICE_UNEDITED": v} for v in (30_000, 35_000, 109_999.99, 110_000, "250000")])
        bins = _by_label(bucketize(rows))
        assert bins["$30k to $34.9k"].count == 1
        assert bins["$35k to $39.9k"].count == 1
        assert bins["$105k to $109.9k"].count == 1
        assert bins["$110k+"].count == 2

    def test_unparseable_prices_are_ignored(self, frame):
        rows = frame([{"FIN_PRICE_UNEDITED": "call"}, {"FIN_PRICE_UNEDITED": None}, {"FIN_PRICE_UNEDITED": "$31,000"}])
        hist = bucketize(rows)
        assert hist.total_valid == 1
        assert _by_label(hist)["$30k to $34.9k"].pct == 100.0

    def test_no_valid_prices_gives_no_bins(self, frame):
        assert bucketize(frame([{"FIN_PRICE_UNEDITED": "n/a"}])).bins == []
        assert bucketize(frame([{"OTHER": 1}])).bins == []
        assert bucketize(frame([])).total_valid == 0

    def test_row_order_does_not_matter(self, frame):
        prices = ["$29,999", "$35,200", "$41,000", "$41,500", "$88,000", "$120,000", "", "$64,999"]
        rows = frame([{"FIN_PRICE_UNEDITED": p} for p in prices])
        expected = histogram_to_records(bucketize(rows))
        for seed in range(5):
            shuffled = rows.sample(frac=1.0, random_state=seed)
            assert histogram_to_records(bucketize(shuffled)) == expected


class TestSeries:
    def test_one_series_per_group_with_prices(self, make_rows, point):
        rows = make_rows(
            [
                point("Bronco", FIN_PRICE_UNEDITED="$45,000"),
                point("Bronco", FIN_PRICE_UNEDITED="$47,000"),
                point("Tahoe", FIN_PRICE_UNEDITED=None),
                point("4Runner", FIN_PRICE_UNEDITED="$31,000"),
            ]
        )
        series = price_series_by_group(rows)
        assert [s["name"] for s in series] == ["4Runner", "Bronco"]
        bronco = {d["label"]: d["pct"] for d in series[1]["data"]}
        assert bronco["$45k to $49.9k"] == pytest.approx(100.0)
