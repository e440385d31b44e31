import logging
from typing import TextIO

log = logging.getLogger(__name__)


class SourceReader:
    """Strip comments and collapse whitespace while keeping line numbering.

    String and character literals are copied verbatim, so comment markers
    inside them are left alone. ``line`` counts the input lines consumed so
    far and is available to callers that report locations.
    """

    def __init__(self, source: str) -> None:
        self._source = source.replace("\r\n", "\n").replace("\r", "\n")
        self._length = len(self._source)
        self._index = 0
        self.line = 1

    def read(self) -> str:
        out: list[str] = []
        ignore_space = True
        while not self._eof():
            ch = self._advance()
            if ch != "\n" and _is_blank(ch):
                ch = " "
            if ch == " " and ignore_space:
                continue
            ignore_space = ch in {" ", "#", "/"}
            if ch == "/" and self._peek() == "/":
                self._skip_line_comment()
                out.append("\n")
            elif ch == "/" and self._peek() == "*":
                self._advance()
                out.extend(self._skip_block_comment())
            elif ch in {'"', "'"}:
                out.append(self._copy_literal(ch))
            else:
                out.append(ch)
        return "".join(out)

    def _peek(self) -> str:
        if self._index >= self._length:
            return ""
        return self._source[self._index]

    def _advance(self) -> str:
        if self._index >= self._length:
            return ""
        ch = self._source[self._index]
        self._index += 1
        if ch == "\n":
            self.line += 1
        return ch

    def _eof(self) -> bool:
        return self._index >= self._length

    def _skip_line_comment(self) -> None:
        while not self._eof():
            if self._advance() == "\n":
                return

    def _skip_block_comment(self) -> list[str]:
        newlines: list[str] = []
        previous = ""
        while not self._eof():
            ch = self._advance()
            if ch == "\n":
                newlines.append("\n")
            elif previous == "*" and ch == "/":
                return newlines
            previous = ch
        log.debug("unterminated block comment at end of input (line %d)", self.line)
        return newlines

    def _copy_literal(self, delimiter: str) -> str:
        chunk = [delimiter]
        while not self._eof():
            ch = self._advance()
            chunk.append(ch)
            if ch == "\\":
                chunk.append(self._advance())
                continue
            if ch == delimiter:
                return "".join(chunk)
        log.debug("unterminated %s literal at end of input (line %d)", delimiter, self.line)
        return "".join(chunk)


def read(stream: TextIO | str) -> str:
    source = stream if isinstance(stream, str) else stream.read()
    reader = SourceReader(source)
    cleaned = reader.read()
    log.debug("read %d lines, %d characters after cleaning", reader.line, len(cleaned))
    return cleaned


def _is_blank(ch: str) -> bool:
    return ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F
