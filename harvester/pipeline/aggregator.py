"""Single-consumer sink that appends enriched records to per-term files.

The aggregator is the only reader of the output queue, so writes to the same
term file are serialised without any locking.  Each record becomes one JSON
line in ``<output_dir>/<term>.jsonl``.
"""

from __future__ import annotations

import json
import logging
import queue
import re
from collections import Counter
from pathlib import Path
from typing import Union

from harvester.errors import StorageError
from harvester.pipeline.models import EnrichedRecord

logger = logging.getLogger(__name__)

FILE_EXTENSION = ".jsonl"

_STOP = object()

# Characters that cannot appear verbatim in a file name, plus the escape itself.
_UNSAFE_NAME_CHARS = re.compile(r"[%/\\\x00]")


def output_path(output_dir: Path, term: str) -> Path:
    """Return the file that holds the records for *term*.

    Path separators, NUL and ``%`` are percent-encoded, so the file always
    lands directly under *output_dir* and distinct terms never share a file
    (``urllib.parse.unquote`` recovers the term).
    """
    name = _UNSAFE_NAME_CHARS.sub(lambda m: f"%{ord(m.group()):02X}", term)
    return output_dir / f"{name}{FILE_EXTENSION}"


class Aggregator:
    """Drain the output queue until :meth:`stop` is called."""

    def __init__(self, output_dir: Path, output_queue: "queue.Queue[Union[EnrichedRecord, object]]") -> None:
        self.output_dir = Path(output_dir)
        self._queue = output_queue
        self.written = 0
        self.failed = 0
        self.per_term: Counter[str] = Counter()

    def run(self) -> None:
        """Consume records one at a time; return after the stop sentinel.

        Records queued before :meth:`stop` are all written before this
        returns, since the queue is FIFO.
        """
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._consume(item)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def stop(self) -> None:
        """Ask :meth:`run` to return once everything queued so far is written."""
        self._queue.put(_STOP)

    def write(self, record: EnrichedRecord) -> Path:
        """Append *record* to its term file, creating directories as needed.

        Raises:
            StorageError: If the directory cannot be created or the append fails.
        """
        path = output_path(self.output_dir, record.term)
        line = json.dumps(record.to_dict(), ensure_ascii=False) + "\n"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        except OSError as exc:
            raise StorageError(f"cannot append to {path}: {exc}") from exc
        return path

    def _consume(self, record: EnrichedRecord) -> None:
        try:
            path = self.write(record)
        except StorageError as exc:
            self.failed += 1
            logger.error("dropping record for %s (%r): %s", record.url, record.term, exc)
            return
        except Exception:
            self.failed += 1
            logger.exception("unexpected error writing %s (%r)", record.url, record.term)
            return
        self.written += 1
        self.per_term[record.term] += 1
        logger.debug("saved %s to %s", record.url, path)
