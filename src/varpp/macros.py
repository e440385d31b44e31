import logging
from dataclasses import dataclass

from varpp.lexer import DefaultTokenizer, Token, Tokenizer, token_match
from varpp.options import PreprocessOptions, normalize_options

log = logging.getLogger(__name__)

_DEFINE = "#define"
_UNEXPANDED_LINE_PREFIXES = ("#ifdef ", "#ifndef ")


@dataclass(frozen=True)
class Macro:
    name: str
    parameters: tuple[str, ...]
    body: tuple[Token, ...]

    @property
    def is_function_like(self) -> bool:
        return bool(self.parameters)

    def replacement(self, args: list[str] | None = None) -> str:
        """Render the body, substituting ``args`` for the parameters.

        Two adjacent names get one separating space so that ``unsigned int``
        does not turn into ``unsignedint``; every other token is glued.
        """
        named_args = dict(zip(self.parameters, args or []))
        tokens = list(self.body)
        pieces: list[str] = []
        for index, token in enumerate(tokens):
            text = token.lexeme
            if token.is_name and text in named_args:
                text = named_args[text]
            pieces.append(text)
            if token_match(tokens, index, "%type% %var%"):
                pieces.append(" ")
        return "".join(pieces)


def parse_define(body: str, tokenizer: Tokenizer | None = None) -> Macro | None:
    """Build a macro from the text following ``#define``."""
    tokens = (DefaultTokenizer() if tokenizer is None else tokenizer).tokenize(body)
    if not tokens or not tokens[0].is_name:
        return None
    name = tokens[0]
    if not (token_match(tokens, 0, "%var% ( %var%") and _adjacent(name, tokens[1])):
        return Macro(name.lexeme, (), tuple(tokens[1:]))
    parameters: list[str] = []
    index = 2
    while index < len(tokens) and tokens[index].lexeme != ")":
        if tokens[index].is_name:
            parameters.append(tokens[index].lexeme)
        index += 1
    return Macro(name.lexeme, tuple(parameters), tuple(tokens[index + 1 :]))


def expand_macros(
    text: str,
    *,
    tokenizer: Tokenizer | None = None,
    options: PreprocessOptions | None = None,
) -> str:
    """Remove every ``#define`` line and substitute the macro in later text.

    Each definition gets one forward pass over the text that follows it, so a
    macro is never visible before its definition. Scanning resumes after each
    inserted replacement, so every use is substituted at most once and a body
    that names its own macro cannot recurse.
    """
    normalized_options = normalize_options(options)
    active_tokenizer = DefaultTokenizer() if tokenizer is None else tokenizer
    code = text
    position = 0
    while True:
        define_pos = _find_define(code, position)
        if define_pos < 0:
            return code
        end_pos = code.find("\n", define_pos)
        while end_pos > 0 and code[end_pos - 1] == "\\":
            end_pos = code.find("\n", end_pos + 1)
        if end_pos < 0:
            log.debug("dropping unterminated #define at end of input")
            return code[:define_pos]
        body = code[define_pos + len(_DEFINE) : end_pos]
        code = code[:define_pos] + code[end_pos:]
        joins = body.count("\\\n")
        if joins:
            body = body.replace("\\\n", "")
            code = code[:define_pos] + "\n" * joins + code[define_pos:]
            define_pos += joins
        position = define_pos
        macro = parse_define(body, active_tokenizer)
        if macro is None:
            log.debug("ignoring #define without a macro name")
            continue
        if not normalized_options.expand_macros:
            continue
        code, count = _expand_occurrences(code, define_pos, macro)
        log.debug("macro %s expanded %d time(s)", macro.name, count)


def _expand_occurrences(code: str, start: int, macro: Macro) -> tuple[str, int]:
    name = macro.name
    count = 0
    position = start
    while True:
        found = code.find(name, position)
        if found < 0:
            return code, count
        end = found + len(name)
        position = end
        if found > 0 and _is_identifier_char(code[found - 1]):
            continue
        prefix = _line_prefix(code, found)
        if prefix == _DEFINE + " ":
            if end >= len(code) or not _is_identifier_char(code[end]):
                log.debug("macro %s is redefined; ending its expansion", name)
                return code, count
            continue
        if prefix.startswith(_UNEXPANDED_LINE_PREFIXES):
            continue
        args: list[str] | None = None
        if macro.is_function_like:
            call = _parse_arguments(code, end)
            if call is None:
                continue
            args, end = call
            if len(args) != len(macro.parameters):
                continue
        elif end < len(code) and _is_identifier_char(code[end]):
            continue
        replacement = macro.replacement(args)
        # Newlines inside a multi-line call are kept after the replacement.
        replacement += "\n" * code.count("\n", found, end)
        code = code[:found] + replacement + code[end:]
        position = found + len(replacement)
        count += 1


def _parse_arguments(code: str, index: int) -> tuple[list[str], int] | None:
    if index >= len(code) or code[index] != "(":
        return None
    args: list[str] = []
    current: list[str] = []
    depth = 0
    for position in range(index, len(code)):
        ch = code[position]
        if ch == "(":
            depth += 1
            if depth == 1:
                continue
        elif ch == ")":
            depth -= 1
            if depth == 0:
                args.append(_argument_text(current))
                return args, position + 1
        if depth == 1 and ch == ",":
            args.append(_argument_text(current))
            current = []
        else:
            current.append(ch)
    return None


def _argument_text(chars: list[str]) -> str:
    return "".join(chars).replace("\n", " ").strip()


def _find_define(code: str, start: int) -> int:
    position = start
    while True:
        found = code.find(_DEFINE, position)
        if found < 0:
            return -1
        after = found + len(_DEFINE)
        at_line_start = found == 0 or code[found - 1] == "\n"
        if at_line_start and (after >= len(code) or code[after] in {" ", "\n"}):
            return found
        position = after


def _line_prefix(code: str, position: int) -> str:
    line_start = code.rfind("\n", 0, position) + 1
    return code[line_start:position]


def _is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _adjacent(left: Token, right: Token) -> bool:
    return left.line == right.line and left.column + len(left.lexeme) == right.column
