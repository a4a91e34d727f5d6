"""Tests for harvester.pipeline.aggregator: the single-consumer file sink."""

from __future__ import annotations

import json
import queue
import threading
from pathlib import Path
from unittest.mock import patch
from urllib.parse import unquote

import pytest

from harvester.errors import StorageError
from harvester.pipeline.aggregator import Aggregator, output_path
from harvester.pipeline.models import EnrichedRecord


def _record(term: str, url: str = "https://x.example/", **meta: str) -> EnrichedRecord:
    return EnrichedRecord(term=term, url=url, description=f"about {term}", meta_tags=dict(meta))


def _lines(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestOutputPath:
    def test_term_file_under_output_dir(self, tmp_path: Path) -> None:
        assert output_path(tmp_path, "alpha") == tmp_path / "alpha.jsonl"

    def test_path_separators_are_encoded(self, tmp_path: Path) -> None:
        path = output_path(tmp_path, "../etc/passwd")
        assert path.parent == tmp_path
        assert path.name == "..%2Fetc%2Fpasswd.jsonl"

    def test_backslash_nul_and_percent_are_encoded(self, tmp_path: Path) -> None:
        assert output_path(tmp_path, "a\\b").name == "a%5Cb.jsonl"
        assert output_path(tmp_path, "a\x00b").name == "a%00b.jsonl"
        assert output_path(tmp_path, "100%").name == "100%25.jsonl"

    @pytest.mark.parametrize(
        "first, second",
        [("a/b", "a_b"), ("a\\b", "a/b"), ("a/b", "a%2Fb"), ("c++", "c__")],
    )
    def test_distinct_terms_get_distinct_files(self, tmp_path: Path, first: str, second: str) -> None:
        assert output_path(tmp_path, first) != output_path(tmp_path, second)

    def test_file_name_decodes_back_to_term(self, tmp_path: Path) -> None:
        term = "50% of a/b\\c"
        name = output_path(tmp_path, term).name
        assert unquote(name[: -len(".jsonl")]) == term


class TestWrite:
    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        out = tmp_path / "nested" / "results"
        agg = Aggregator(out, queue.Queue())

        path = agg.write(_record("alpha"))

        assert path == out / "alpha.jsonl"
        assert path.exists()

    def test_appends_one_json_line_per_record(self, tmp_path: Path) -> None:
        agg = Aggregator(tmp_path, queue.Queue())
        agg.write(_record("alpha", url="https://a.example/1", keywords="k1"))
        agg.write(_record("alpha", url="https://a.example/2"))

        assert _lines(tmp_path / "alpha.jsonl") == [
            {"url": "https://a.example/1", "description": "about alpha", "meta_tags": {"keywords": "k1"}},
            {"url": "https://a.example/2", "description": "about alpha", "meta_tags": {}},
        ]

    def test_non_ascii_kept_verbatim(self, tmp_path: Path) -> None:
        agg = Aggregator(tmp_path, queue.Queue())
        agg.write(EnrichedRecord("язык", "https://пример.рф/", "описание", {"keywords": "ключ"}))

        text = (tmp_path / "язык.jsonl").read_text(encoding="utf-8")
        assert "описание" in text
        assert "ключ" in text

    def test_os_error_becomes_storage_error(self, tmp_path: Path) -> None:
        agg = Aggregator(tmp_path, queue.Queue())
        with patch.object(Path, "open", side_effect=PermissionError("read-only")):
            with pytest.raises(StorageError):
                agg.write(_record("alpha"))


class TestRun:
    def test_drains_queue_then_stops(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        for i in range(3):
            q.put(_record("alpha", url=f"https://a.example/{i}"))
        q.put(_record("beta"))
        agg.stop()

        agg.run()

        assert len(_lines(tmp_path / "alpha.jsonl")) == 3
        assert len(_lines(tmp_path / "beta.jsonl")) == 1
        assert agg.written == 4
        assert agg.per_term == {"alpha": 3, "beta": 1}

    def test_storage_error_does_not_stop_loop(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        q.put(_record("broken"))
        q.put(_record("fine"))
        agg.stop()

        real_write = agg.write

        def flaky_write(record: EnrichedRecord) -> Path:
            if record.term == "broken":
                raise StorageError("disk full")
            return real_write(record)

        with patch.object(agg, "write", side_effect=flaky_write):
            agg.run()

        assert agg.failed == 1
        assert agg.written == 1
        assert (tmp_path / "fine.jsonl").exists()
        assert not (tmp_path / "broken.jsonl").exists()

    def test_unexpected_error_does_not_stop_loop(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        # Not JSON-serialisable, so json.dumps raises TypeError.
        q.put(EnrichedRecord("odd", "https://x.example/", "", {"k": object()}))  # type: ignore[dict-item]
        q.put(_record("good"))
        agg.stop()

        agg.run()

        assert agg.failed == 1
        assert agg.written == 1
        assert (tmp_path / "good.jsonl").exists()

    def test_nul_in_term_is_written_not_fatal(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        q.put(_record("bad\x00term"))
        q.put(_record("good"))
        agg.stop()

        agg.run()

        assert agg.written == 2
        assert (tmp_path / "bad%00term.jsonl").exists()
        assert (tmp_path / "good.jsonl").exists()

    def test_similar_terms_stay_in_separate_files(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        q.put(_record("a/b", url="https://slash.example/"))
        q.put(_record("a_b", url="https://underscore.example/"))
        agg.stop()

        agg.run()

        assert sorted(p.name for p in tmp_path.iterdir()) == ["a%2Fb.jsonl", "a_b.jsonl"]
        assert _lines(tmp_path / "a%2Fb.jsonl")[0]["url"] == "https://slash.example/"
        assert _lines(tmp_path / "a_b.jsonl")[0]["url"] == "https://underscore.example/"

    def test_blocks_until_records_arrive(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        sink = threading.Thread(target=agg.run)
        sink.start()

        q.put(_record("late"))
        agg.stop()
        sink.join(timeout=5)

        assert not sink.is_alive()
        assert agg.written == 1

    def test_many_producers_no_loss_no_duplication(self, tmp_path: Path) -> None:
        q: queue.Queue = queue.Queue()
        agg = Aggregator(tmp_path, q)
        sink = threading.Thread(target=agg.run)
        sink.start()

        def produce(term: str) -> None:
            for i in range(50):
                q.put(_record(term, url=f"https://{term}.example/{i}"))

        producers = [threading.Thread(target=produce, args=(t,)) for t in ("a", "b", "c", "d")]
        for p in producers:
            p.start()
        for p in producers:
            p.join()
        agg.stop()
        sink.join(timeout=5)

        for term in ("a", "b", "c", "d"):
            urls = [line["url"] for line in _lines(tmp_path / f"{term}.jsonl")]
            assert sorted(urls) == sorted(f"https://{term}.example/{i}" for i in range(50))
