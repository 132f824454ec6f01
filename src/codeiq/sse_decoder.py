from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .events import extract_delta_content

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class RecordKind(str, Enum):
    COMMENT = "comment"
    BLANK = "blank"
    DATA = "data"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class StreamRecord:
    raw_line: str
    kind: RecordKind
    payload: str | None = None

    @property
    def is_done(self) -> bool:
        return self.kind is RecordKind.DATA and self.payload == DONE_SENTINEL


@dataclass(frozen=True)
class ParsedPayload:
    obj: Any
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None


def classify_line(line: str) -> StreamRecord:
    if line.endswith("\r"):
        line = line[:-1]
    if line.startswith(":"):
        return StreamRecord(raw_line=line, kind=RecordKind.COMMENT)
    if not line.strip():
        return StreamRecord(raw_line=line, kind=RecordKind.BLANK)
    if line.startswith(DATA_PREFIX):
        return StreamRecord(raw_line=line, kind=RecordKind.DATA, payload=line[len(DATA_PREFIX):].strip())
    return StreamRecord(raw_line=line, kind=RecordKind.UNRECOGNIZED)


def parse_payload(text: str) -> ParsedPayload:
    """Try-parse a JSON payload; truncation or oversize input is reported, not raised."""

    try:
        return ParsedPayload(obj=json.loads(text), error=None)
    except json.JSONDecodeError as e:
        return ParsedPayload(obj=None, error=f"json_decode_error: {e}")
    except (ValueError, RecursionError) as e:
        # Valid syntax past interpreter limits (huge ints, deep nesting).
        return ParsedPayload(obj=None, error=f"json_limit_error: {type(e).__name__}")


class IncrementalEventStreamDecoder:
    """Turn raw chunks of a `data: {...}` event stream into content fragments.

    Chunk boundaries are unrelated to record boundaries, so text is buffered
    until a newline completes a line. A `data:` payload that does not parse is
    held back instead of being dropped: the upstream may have split one record
    across two lines, and the following line is tried as its continuation.

    One instance per streaming response; not safe for concurrent `feed` calls.
    """

    def __init__(
        self,
        *,
        extractor: Callable[[Any], str | None] = extract_delta_content,
        encoding: str = "utf-8",
    ):
        self._extractor = extractor
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        # Payload of a data record that failed to parse, awaiting continuation.
        self._held: str | None = None
        self._finished = False
        self.dropped_records = 0

    @property
    def pending_text(self) -> str:
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        if chunk:
            self._buffer += self._decoder.decode(chunk)
        return self._drain(final=False)

    def flush(self) -> list[str]:
        if self._finished:
            return []
        self._finished = True

        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"

        out = self._drain(final=True)
        if self._held is not None:
            self._drop_held()
        return out

    def _drop_held(self) -> None:
        logger.warning("Dropping undecodable stream record: %.120r", self._held)
        self.dropped_records += 1
        self._held = None

    def _emit(self, obj: Any, out: list[str]) -> None:
        fragment = self._extractor(obj)
        if fragment:
            out.append(fragment)

    def _drain(self, *, final: bool) -> list[str]:
        out: list[str] = []
        while True:
            idx = self._buffer.find("\n")
            if idx == -1:
                break
            record = classify_line(self._buffer[:idx])
            self._buffer = self._buffer[idx + 1 :]

            if self._held is not None:
                if record.kind is RecordKind.UNRECOGNIZED:
                    candidate = f"{self._held}\n{record.raw_line}"
                    parsed = parse_payload(candidate)
                    if parsed.ok:
                        self._held = None
                        self._emit(parsed.obj, out)
                        continue
                    self._held = candidate
                    if final:
                        continue
                    break
                # A new record started; the held one can no longer complete.
                self._drop_held()

            if record.kind is not RecordKind.DATA or record.is_done or not record.payload:
                continue

            parsed = parse_payload(record.payload)
            if parsed.ok:
                self._emit(parsed.obj, out)
                continue

            logger.debug("Holding incomplete payload: %s", parsed.error)
            self._held = record.payload
            if not final:
                # Stop here; the rest of the buffer waits for the next call.
                break
        return out


def iter_fragments(chunks: Iterable[bytes], decoder: IncrementalEventStreamDecoder | None = None) -> Iterator[str]:
    """Iterate a byte stream producing content fragments, flushing at the end."""

    dec = decoder or IncrementalEventStreamDecoder()
    for chunk in chunks:
        yield from dec.feed(chunk)
    yield from dec.flush()


async def aiter_fragments(
    chunks: AsyncIterable[bytes], decoder: IncrementalEventStreamDecoder | None = None
) -> AsyncIterator[str]:
    dec = decoder or IncrementalEventStreamDecoder()
    async for chunk in chunks:
        for fragment in dec.feed(chunk):
            yield fragment
    for fragment in dec.flush():
        yield fragment
