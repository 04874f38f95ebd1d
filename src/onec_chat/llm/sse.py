"""Incremental Server-Sent-Events reassembly and delta folding.

Network chunks arrive with arbitrary boundaries.  ``SSEReassembler`` turns
them into complete events; ``DeltaAccumulator`` folds each event into the
running text and reports the fragments it produced, leaving the side effect
of forwarding them to the caller.
"""

from __future__ import annotations

import codecs
import json
import logging
from dataclasses import dataclass, field

from onec_chat.types import StreamStats

_logger = logging.getLogger(__name__)

EVENT_DELIMITER = "\n\n"
DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"


# ---------------------------------------------------------------------------
# Reassembly
# ---------------------------------------------------------------------------

class SSEReassembler:
    """Buffer decoded text and split it into complete SSE events.

    Invalid UTF-8 is replaced with U+FFFD instead of failing the stream.
    Multi-byte characters split across chunks are decoded correctly.
    After every ``feed()`` the pending buffer holds no event delimiter.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Add *chunk* and return every event it completed, in order."""
        # Old buffer holds no delimiter; only its last char can start one
        scan_from = max(len(self._buffer) - 1, 0)
        self._buffer += self._decoder.decode(chunk)

        events: list[str] = []
        start = 0
        pos = self._buffer.find(EVENT_DELIMITER, scan_from)
        while pos != -1:
            events.append(self._buffer[start:pos])
            start = pos + len(EVENT_DELIMITER)
            pos = self._buffer.find(EVENT_DELIMITER, start)
        if start:
            self._buffer = self._buffer[start:]
        return events

    @property
    def pending(self) -> str:
        return self._buffer

    def finish(self) -> str:
        """Flush the decoder and return the unterminated remainder."""
        rest = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return rest


# ---------------------------------------------------------------------------
# Delta parsing
# ---------------------------------------------------------------------------

def parse_delta(payload: str) -> str | None:
    """Return ``choices[0].delta.content`` of a stream chunk.

    Raises ``ValueError`` when the payload is not JSON or is not shaped
    like a chat completion chunk.  An empty ``choices`` list or a delta
    without content yields ``None``.
    """
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("chunk is not an object")
    choices = data.get("choices")
    if not isinstance(choices, list):
        raise ValueError("chunk has no choices list")
    if not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict) or not isinstance(choice.get("delta"), dict):
        raise ValueError("choice has no delta object")
    content = choice["delta"].get("content")
    if content is not None and not isinstance(content, str):
        raise ValueError("delta content is not a string")
    return content


@dataclass
class FoldStep:
    """Output of folding one event: new fragments and the terminal flag."""

    fragments: list[str] = field(default_factory=list)
    done: bool = False


class DeltaAccumulator:
    """Fold SSE events into the assistant's text.

    ``text`` always equals the concatenation, in arrival order, of every
    fragment returned so far.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self.stats = StreamStats()

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def apply(self, event: str) -> FoldStep:
        step = FoldStep()
        self.stats.events += 1

        for line in event.split("\n"):
            line = line.removesuffix("\r")
            if not line.startswith(DATA_PREFIX):
                continue
            payload = line[len(DATA_PREFIX):]
            if payload.strip() == DONE_MARKER:
                self.stats.done = True
                step.done = True
                return step

            try:
                content = parse_delta(payload)
            except ValueError as e:
                self.stats.skipped += 1
                _logger.debug("Skipping SSE payload (%s): %.200s", e, payload)
                continue

            if content is not None:
                self._parts.append(content)
                self.stats.fragments += 1
                step.fragments.append(content)

        return step
