from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol, cast

PUNCTUATORS: tuple[str, ...] = (
    "...",
    ">>=",
    "<<=",
    "->*",
    "->",
    "++",
    "--",
    "&&",
    "||",
    "<=",
    ">=",
    "==",
    "!=",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<",
    ">>",
    "##",
    "::",
    ".*",
)

PUNCTUATORS_SORTED: tuple[str, ...] = cast(
    tuple[str, ...], tuple(sorted(PUNCTUATORS, key=len, reverse=True))
)


class TokenKind(Enum):
    IDENT = auto()
    NUMBER = auto()
    CHAR_CONST = auto()
    STRING_LITERAL = auto()
    PUNCTUATOR = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    line: int
    column: int

    @property
    def is_name(self) -> bool:
        return self.kind == TokenKind.IDENT


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> list[Token]: ...


class Lexer:
    """Lenient preprocessing-token lexer.

    Malformed input never raises: unterminated literals stop at the end of the
    text and unknown characters are returned as one-character punctuators.
    No end-of-input token is appended.
    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._length = len(source)
        self._index = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_whitespace()
            if self._eof():
                return tokens
            start = self._index
            start_line = self._line
            start_column = self._column
            ch = self._peek()
            if ch in {'"', "'"}:
                self._read_quoted(ch)
                kind = TokenKind.STRING_LITERAL if ch == '"' else TokenKind.CHAR_CONST
            elif self._is_number_start():
                self._read_number()
                kind = TokenKind.NUMBER
            elif _is_identifier_start(ch):
                while not self._eof() and _is_identifier_part(self._peek()):
                    self._advance()
                kind = TokenKind.IDENT
            else:
                self._read_punctuator()
                kind = TokenKind.PUNCTUATOR
            lexeme = self._source[start : self._index]
            tokens.append(Token(kind, lexeme, start_line, start_column))

    def _peek(self, offset: int = 0) -> str:
        index = self._index + offset
        if index >= self._length:
            return ""
        return self._source[index]

    def _advance(self) -> str:
        if self._index >= self._length:
            return ""
        ch = self._source[self._index]
        self._index += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _eof(self) -> bool:
        return self._index >= self._length

    def _skip_whitespace(self) -> None:
        while not self._eof() and self._peek().isspace():
            self._advance()

    def _read_quoted(self, delimiter: str) -> None:
        self._advance()
        while not self._eof():
            ch = self._advance()
            if ch == delimiter:
                return
            if ch == "\\":
                self._advance()

    def _is_number_start(self) -> bool:
        ch = self._peek()
        if ch.isdigit():
            return True
        return ch == "." and self._peek(1).isdigit()

    def _read_number(self) -> None:
        self._advance()
        while not self._eof():
            ch = self._peek()
            if ch in {"e", "E", "p", "P"} and self._peek(1) in {"+", "-"}:
                self._advance()
                self._advance()
                continue
            if ch.isalnum() or ch in {".", "_"}:
                self._advance()
                continue
            break

    def _read_punctuator(self) -> None:
        for punct in PUNCTUATORS_SORTED:
            if self._source.startswith(punct, self._index):
                for _ in punct:
                    self._advance()
                return
        self._advance()


class DefaultTokenizer:
    def tokenize(self, text: str) -> list[Token]:
        return lex(text)


def lex(source: str) -> list[Token]:
    return Lexer(source).tokenize()


def token_match(tokens: list[Token], index: int, pattern: str) -> bool:
    """Match ``pattern`` against the tokens starting at ``index``.

    Pattern words are separated by spaces. ``%var%`` and ``%type%`` match a
    name, ``%num%`` a number, ``%str%`` a string literal and ``%any%`` any
    token. ``a|b`` matches either lexeme; other words match literally.
    """
    for offset, word in enumerate(pattern.split()):
        position = index + offset
        if position < 0 or position >= len(tokens):
            return False
        if not _match_word(tokens[position], word):
            return False
    return True


def _match_word(token: Token, word: str) -> bool:
    if word in {"%var%", "%type%"}:
        return token.is_name
    if word == "%num%":
        return token.kind == TokenKind.NUMBER
    if word == "%str%":
        return token.kind == TokenKind.STRING_LITERAL
    if word == "%any%":
        return True
    if "|" in word.strip("|"):
        return token.lexeme in word.split("|")
    return token.lexeme == word


def _is_identifier_start(ch: str) -> bool:
    return ch == "_" or ch == "$" or ch.isalpha()


def _is_identifier_part(ch: str) -> bool:
    return _is_identifier_start(ch) or ch.isdigit()
