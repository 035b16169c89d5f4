"""Streaming scanner for ``[[TAG|p1|p2]]`` command markers in agent output.

Agent replies arrive as a stream of text fragments whose boundaries have no
relation to marker boundaries. ``CommandParser`` keeps the unconsumed tail of
the stream in an explicit buffer so that a marker split across any number of
fragments is recognised exactly as if it had arrived in one piece.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

import structlog

from agenthaus.schemas.skill import SkillDefinition

log = structlog.get_logger()

OPEN_TOKEN = "[["
CLOSE_TOKEN = "]]"
FIELD_SEPARATOR = "|"


class TagLookup(Protocol):
    def get_by_tag(self, tag: str) -> SkillDefinition | None: ...


class ParserState(StrEnum):
    TEXT = "text"
    OPEN_SEEN = "open_seen"
    FLUSH = "flush"


@dataclass(frozen=True)
class ParsedCommand:
    skill_id: str
    command_tag: str  # as written by the agent
    params: tuple[str, ...]
    raw: str
    span: tuple[int, int]  # absolute [start, end) offsets in the reply


@dataclass(frozen=True)
class LiteralSegment:
    text: str


@dataclass(frozen=True)
class CommandSegment:
    command: ParsedCommand


Segment = LiteralSegment | CommandSegment


def split_fields(body: str) -> list[str]:
    return [f.strip() for f in body.split(FIELD_SEPARATOR)]


class CommandParser:
    """Incremental marker scanner. One instance per turn; not thread-safe."""

    def __init__(self, registry: TagLookup) -> None:
        self._registry = registry
        self._buffer = ""
        self._pos = 0
        self._marker_start = -1
        # Absolute stream offset of _buffer[0]
        self._offset = 0
        self.state = ParserState.TEXT

    def feed(self, fragment: str) -> list[Segment]:
        if self.state is ParserState.FLUSH:
            raise RuntimeError("CommandParser.feed() called after close()")
        if not fragment:
            return []

        self._buffer += fragment
        segments: list[Segment] = []
        self._scan(segments)
        self._compact()
        return segments

    def close(self) -> list[Segment]:
        """End of stream: release anything withheld as literal text."""
        if self.state is ParserState.FLUSH:
            return []

        start = self._marker_start if self.state is ParserState.OPEN_SEEN else self._pos
        tail = self._buffer[start:]
        if self.state is ParserState.OPEN_SEEN:
            log.debug("parser.unterminated_marker", length=len(tail))

        self._offset += len(self._buffer)
        self._buffer = ""
        self._pos = 0
        self._marker_start = -1
        self.state = ParserState.FLUSH
        return [LiteralSegment(tail)] if tail else []

    def _scan(self, out: list[Segment]) -> None:
        buf = self._buffer
        while True:
            if self.state is ParserState.TEXT:
                idx = buf.find(OPEN_TOKEN, self._pos)
                if idx == -1:
                    # A lone trailing "[" may be the first half of an open token
                    end = len(buf) - 1 if buf.endswith("[") else len(buf)
                    self._literal(out, self._pos, end)
                    self._pos = max(self._pos, end)
                    return
                self._literal(out, self._pos, idx)
                self._marker_start = idx
                self._pos = idx + len(OPEN_TOKEN)
                self.state = ParserState.OPEN_SEEN
                continue

            # OPEN_SEEN: "[[[TAG" opens at the last bracket of the run
            while self._pos == self._marker_start + len(OPEN_TOKEN) and buf[self._pos : self._pos + 1] == "[":
                self._literal(out, self._marker_start, self._marker_start + 1)
                self._marker_start += 1
                self._pos += 1

            close = buf.find(CLOSE_TOKEN, self._pos)
            reopen = buf.find(OPEN_TOKEN, self._pos)
            if reopen != -1 and (close == -1 or reopen < close):
                self._literal(out, self._marker_start, reopen)
                self._marker_start = reopen
                self._pos = reopen + len(OPEN_TOKEN)
                continue
            if close == -1:
                # Tokens are two characters; only the last one can still pair up
                self._pos = max(self._pos, len(buf) - 1)
                return

            end = close + len(CLOSE_TOKEN)
            self._marker(out, self._marker_start, close, end)
            self._pos = end
            self._marker_start = -1
            self.state = ParserState.TEXT

    def _literal(self, out: list[Segment], start: int, end: int) -> None:
        if end > start:
            out.append(LiteralSegment(self._buffer[start:end]))

    def _marker(self, out: list[Segment], start: int, close: int, end: int) -> None:
        raw = self._buffer[start:end]
        fields = split_fields(self._buffer[start + len(OPEN_TOKEN) : close])
        tag = fields[0]
        definition = self._registry.get_by_tag(tag) if tag else None
        if definition is None:
            log.debug("parser.unknown_tag", tag=tag[:64])
            out.append(LiteralSegment(raw))
            return

        out.append(
            CommandSegment(
                ParsedCommand(
                    skill_id=definition.id,
                    command_tag=tag,
                    params=tuple(fields[1:]),
                    raw=raw,
                    span=(self._offset + start, self._offset + end),
                )
            )
        )

    def _compact(self) -> None:
        keep_from = self._marker_start if self.state is ParserState.OPEN_SEEN else self._pos
        if keep_from <= 0:
            return
        self._buffer = self._buffer[keep_from:]
        self._offset += keep_from
        self._pos -= keep_from
        if self._marker_start >= 0:
            self._marker_start -= keep_from
