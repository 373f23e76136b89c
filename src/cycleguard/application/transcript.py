"""
Lightweight scraping of the worker transcript.

Recognized lines update ``filesModified``/``errors`` in the status record
or add a note to the progress log. Nothing downstream depends on this.
"""

import logging
import re
from dataclasses import dataclass

from cycleguard.application.records import AgentRecords

logger = logging.getLogger(__name__)

FILE_PATTERN = re.compile(r"(?:File created|File modified|Created file):\s*(\S+)")
ERROR_PATTERN = re.compile(r"\bError:|\bFAIL")
NOTE_PATTERN = re.compile(r"tests passing|git commit|✅", re.IGNORECASE)

MAX_ERROR_LENGTH = 200


@dataclass(frozen=True)
class TranscriptEvent:
    """What one transcript line says about the cycle."""

    file: str | None = None
    error: str | None = None
    note: str | None = None

    @property
    def empty(self) -> bool:
        return self.file is None and self.error is None and self.note is None


def scrape_line(line: str) -> TranscriptEvent:
    """Classify a single transcript line."""
    text = line.strip()
    if not text:
        return TranscriptEvent()
    match = FILE_PATTERN.search(text)
    if match:
        return TranscriptEvent(file=match.group(1))
    if ERROR_PATTERN.search(text):
        return TranscriptEvent(error=text[:MAX_ERROR_LENGTH])
    if NOTE_PATTERN.search(text):
        return TranscriptEvent(note=text)
    return TranscriptEvent()


class TranscriptScraper:
    """Line callback handed to the worker; folds events into the records."""

    def __init__(self, records: AgentRecords):
        self._records = records
        self.files: list[str] = []
        self.errors: list[str] = []

    def __call__(self, line: str) -> None:
        logger.debug("worker: %s", line.rstrip())
        event = scrape_line(line)
        if event.file and event.file not in self.files:
            self.files.append(event.file)
            self._records.update_status(files_modified=tuple(self.files))
        elif event.error:
            self.record_error(event.error)
        elif event.note:
            self._records.append_progress(event.note)

    def record_error(self, message: str) -> None:
        self.errors.append(message)
        self._records.add_error(message)
