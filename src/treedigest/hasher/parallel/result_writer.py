"""Result writer thread.

Workers finish in any order; this thread is the only one that touches the
output stream, so lines are written whole and never interleaved. No ordering
between lines is implied.
"""

import logging
import os
import sys
import threading
from queue import Queue
from typing import Any, Optional, TextIO

from ..file_worker import FileResult

logger = logging.getLogger(__name__)


class ResultWriter:
    """Serializes FileResult lines onto a text stream."""

    def __init__(self, stream: Optional[TextIO] = None, queue_maxsize: int = 0):
        """
        Args:
            stream: Output stream (default: sys.stdout at construction time)
            queue_maxsize: Bound on buffered results (0 = unbounded)
        """
        self.stream = stream if stream is not None else sys.stdout
        self.results_queue: Queue = Queue(maxsize=queue_maxsize)
        self.computed = 0
        self.reused = 0
        self.write_error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def lines_written(self) -> int:
        return self.computed + self.reused

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._writer_main, name="Writer")
        self._thread.start()
        logger.debug("Started writer thread")

    def emit(self, result: FileResult) -> None:
        """Hand a result to the writer thread. Safe to call from any thread."""
        self.results_queue.put(result)

    def close(self) -> None:
        """Flush every pending result and stop the writer thread."""
        if self._thread is None:
            return
        self.results_queue.put(None)
        self._thread.join()
        self._thread = None
        logger.debug(f"Writer thread finished: {{'computed': {self.computed}, 'reused': {self.reused}}}")

    def __enter__(self) -> "ResultWriter":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _writer_main(self) -> None:
        while True:
            result = self.results_queue.get()
            try:
                if result is None:
                    break
                self._write(result)
            except Exception as e:
                # The thread must outlive any failure or later results are lost
                self._record_write_error(e)
            finally:
                self.results_queue.task_done()

    def _write(self, result: FileResult) -> None:
        if result.reused:
            self.reused += 1
        else:
            self.computed += 1

        # After the first failure keep draining so workers never block on a full queue
        if self.write_error is not None:
            return
        try:
            self._write_line(result.format_line() + "\n")
            self.stream.flush()
        except (OSError, ValueError) as e:
            self._record_write_error(e)

    def _write_line(self, line: str) -> None:
        """Write one line, falling back to raw bytes for undecodable file names."""
        try:
            self.stream.write(line)
        except UnicodeEncodeError:
            buffer = getattr(self.stream, "buffer", None)
            if buffer is None:
                raise
            # os.fsencode restores the original name bytes from surrogate escapes
            self.stream.flush()
            buffer.write(os.fsencode(line))

    def _record_write_error(self, error: BaseException) -> None:
        if self.write_error is None:
            self.write_error = error
        logger.error(f"Failed to write results: {error}")
