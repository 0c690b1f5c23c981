import random

import httpx
import pytest

from review_probe.dataset import load_reviews, parse_reviews, pick_random
from review_probe.errors import DatasetError


def test_parse_reviews_drops_blank_rows():
    tsv = "text\ngood\nbad\n\n"
    assert parse_reviews(tsv) == ["good", "bad"]


def test_parse_reviews_drops_whitespace_only_values():
    tsv = "text\tlabel\ngood\t1\n   \t0\nbad\t0\n"
    assert parse_reviews(tsv) == ["good", "bad"]


def test_parse_reviews_prefers_text_column():
    tsv = "id\ttext\tstars\n1\tLoved it\t5\n2\t  Meh  \t3\n"
    assert parse_reviews(tsv) == ["Loved it", "Meh"]


def test_parse_reviews_falls_back_to_single_column():
    tsv = "review\nFirst one\nSecond one\n"
    assert parse_reviews(tsv) == ["First one", "Second one"]


def test_parse_reviews_without_text_column_and_many_columns_is_empty():
    tsv = "id\tbody\n1\tsomething\n"
    assert parse_reviews(tsv) == []


def test_parse_reviews_keeps_quotes_verbatim():
    tsv = 'text\nShe said "wow" twice\n'
    assert parse_reviews(tsv) == ['She said "wow" twice']


def test_load_reviews_from_path(tmp_path):
    path = tmp_path / "reviews_test.tsv"
    path.write_text("text\nGreat blender\nBroke in a week\n", encoding="utf-8")

    assert load_reviews(path) == ["Great blender", "Broke in a week"]


def test_load_reviews_empty_file_raises(tmp_path):
    path = tmp_path / "reviews_test.tsv"
    path.write_text("text\n\n", encoding="utf-8")

    with pytest.raises(DatasetError) as excinfo:
        load_reviews(path)
    assert "No reviews found in reviews_test.tsv" in str(excinfo.value)


def test_load_reviews_missing_file_raises(tmp_path):
    with pytest.raises(DatasetError):
        load_reviews(tmp_path / "absent.tsv")


def test_load_reviews_from_url():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        return httpx.Response(200, text="text\nfrom the web\n")

    client = httpx.Client(transport=httpx.MockTransport(handler))
    assert load_reviews("https://example.com/reviews_test.tsv", client=client) == [
        "from the web"
    ]


def test_load_reviews_url_error_status():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(404)))

    with pytest.raises(DatasetError) as excinfo:
        load_reviews("https://example.com/reviews_test.tsv", client=client)
    assert "(404)" in str(excinfo.value)


def test_pick_random_single_element_always_returned():
    for seed in range(20):
        assert pick_random(["only"], rng=random.Random(seed)) == "only"


def test_pick_random_empty_returns_none():
    assert pick_random([]) is None


def test_pick_random_stays_in_dataset():
    reviews = ["a", "b", "c"]
    rng = random.Random(7)
    picks = {pick_random(reviews, rng=rng) for _ in range(50)}
    assert picks <= set(reviews)
    assert len(picks) > 1


def test_parse_reviews_strips_byte_order_mark():
    assert parse_reviews("\ufefftext\tlabel\ngood\t1\nbad\t0\n") == ["good", "bad"]


def test_load_reviews_from_spreadsheet_export_with_bom(tmp_path):
    path = tmp_path / "r.tsv"
    path.write_bytes("\ufefftext\tlabel\ngood\t1\nbad\t0\n".encode("utf-8"))

    assert load_reviews(path) == ["good", "bad"]
