"""
Chat Completion Stream Decoder.

Reassembles the text of a streamed chat completion from Server-Sent
Events lines of the form ``data: {json}``. Input may arrive split at any
byte boundary; the reconstructed text does not depend on where the
splits fall.

States:
    ACCUMULATING_LINE  buffer holds no complete line yet
    HAVE_LINE          a complete line is being processed
    AWAITING_JSON      a data line held JSON that did not parse; it is
                       retried, joined with the following line, once more
                       input arrives
    DONE               the ``[DONE]`` marker was seen; input is ignored
"""

import codecs
import json
import logging
from enum import Enum
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"


class DecoderState(str, Enum):
    ACCUMULATING_LINE = "accumulating_line"
    HAVE_LINE = "have_line"
    AWAITING_JSON = "awaiting_json"
    DONE = "done"


class _Incomplete(Exception):
    pass


def _extract_content(payload: str) -> Optional[str]:
    """Pull ``choices[0].delta.content`` out of a JSON payload."""
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise _Incomplete() from exc

    if not isinstance(parsed, dict):
        return None
    choices = parsed.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class ChatStreamDecoder:
    """
    Incremental decoder for streamed chat completion responses.

    Usage:
        decoder = ChatStreamDecoder()
        async for chunk in response.aiter_bytes():
            for fragment in decoder.feed(chunk):
                ...
            if decoder.done:
                break
        decoder.finish()
        text = decoder.text
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending: Optional[str] = None
        self.state = DecoderState.ACCUMULATING_LINE
        self.fragments: List[str] = []
        self.malformed_lines = 0

    @property
    def text(self) -> str:
        return "".join(self.fragments)

    @property
    def done(self) -> bool:
        return self.state == DecoderState.DONE

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Add input and return any text fragments it completed."""
        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        return self._drain(final=False)

    def finish(self) -> List[str]:
        """Flush at end of stream, treating a trailing partial line as complete."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"
        return self._drain(final=True)

    def _take_line(self) -> Optional[str]:
        newline = self._buffer.find("\n")
        if newline == -1:
            return None
        line = self._buffer[:newline]
        self._buffer = self._buffer[newline + 1:]
        if line.endswith("\r"):
            line = line[:-1]
        return line

    def _emit(self, content: Optional[str], out: List[str]) -> None:
        if content:
            self.fragments.append(content)
            out.append(content)

    def _retry_pending(self, out: List[str], final: bool) -> bool:
        """Retry a held payload. Returns False while still waiting for input."""
        if "\n" not in self._buffer:
            if not final:
                return False
            self._drop_pending()
            return True

        continuation = self._buffer[: self._buffer.find("\n")].rstrip("\r")
        if continuation.startswith(("data:", ":", "event:", "id:")) or not continuation.strip():
            # Next line is a new field, so the held payload was simply malformed
            self._drop_pending()
            return True

        self._take_line()
        joined = self._pending + continuation
        try:
            content = _extract_content(joined)
        except _Incomplete:
            self._pending = joined
            return self._retry_pending(out, final)

        self._pending = None
        self.state = DecoderState.ACCUMULATING_LINE
        self._emit(content, out)
        return True

    def _drop_pending(self) -> None:
        self.malformed_lines += 1
        logger.debug(f"[STREAM] Discarding malformed data line: {self._pending[:80]!r}")
        self._pending = None
        self.state = DecoderState.ACCUMULATING_LINE

    def _drain(self, final: bool) -> List[str]:
        out: List[str] = []

        if self.state == DecoderState.AWAITING_JSON and not self._retry_pending(out, final):
            return out

        while True:
            line = self._take_line()
            if line is None:
                self.state = DecoderState.ACCUMULATING_LINE
                break
            self.state = DecoderState.HAVE_LINE

            if not line.strip() or line.startswith(":"):
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload = line[len(DATA_PREFIX):].strip()
            if payload == DONE_MARKER:
                self.state = DecoderState.DONE
                self._buffer = ""
                break

            try:
                content = _extract_content(payload)
            except _Incomplete:
                self._pending = payload
                self.state = DecoderState.AWAITING_JSON
                if not self._retry_pending(out, final):
                    break
                continue

            self._emit(content, out)

        return out
