import logging
import re
from dataclasses import dataclass
from enum import Enum, auto

from varpp.diag import ConfigurationError, Diagnostic

log = logging.getLogger(__name__)

_CONFIG_SEGMENT_RE = re.compile(r"[^\s;]+")

_PP_INVALID_CONFIGURATION = "VARPP-CFG-0101"


class ConditionKind(Enum):
    SYMBOL = auto()
    FORCED_TRUE = auto()
    FORCED_FALSE = auto()


@dataclass(frozen=True)
class Condition:
    kind: ConditionKind
    name: str = ""

    @classmethod
    def symbol(cls, name: str) -> "Condition":
        return cls(ConditionKind.SYMBOL, name)

    def flipped(self) -> "Condition":
        if self.kind == ConditionKind.FORCED_TRUE:
            return FORCED_FALSE
        return FORCED_TRUE

    def __str__(self) -> str:
        if self.kind == ConditionKind.FORCED_TRUE:
            return "<true>"
        if self.kind == ConditionKind.FORCED_FALSE:
            return "<false>"
        return self.name


FORCED_TRUE = Condition(ConditionKind.FORCED_TRUE)
FORCED_FALSE = Condition(ConditionKind.FORCED_FALSE)


class DirectiveKind(Enum):
    IFDEF = auto()
    IFNDEF = auto()
    IF = auto()
    ELIF = auto()
    ELSE = auto()
    ENDIF = auto()
    DEFINE = auto()


_DIRECTIVE_KEYWORDS = (
    ("#ifdef", DirectiveKind.IFDEF),
    ("#ifndef", DirectiveKind.IFNDEF),
    ("#if", DirectiveKind.IF),
    ("#elif", DirectiveKind.ELIF),
    ("#else", DirectiveKind.ELSE),
    ("#endif", DirectiveKind.ENDIF),
    ("#define", DirectiveKind.DEFINE),
)
_CONDITION_KINDS = frozenset(
    {
        DirectiveKind.IFDEF,
        DirectiveKind.IFNDEF,
        DirectiveKind.IF,
        DirectiveKind.ELIF,
    }
)
_CONDITIONAL_KINDS = _CONDITION_KINDS | {DirectiveKind.ELSE, DirectiveKind.ENDIF}
_EXPRESSION_KINDS = frozenset({DirectiveKind.IF, DirectiveKind.ELIF})
# An expression may follow `#if` and `#elif` without a separating space.
_EXPRESSION_STARTS = (" ", "(", "!")
_CONDITIONAL_PREFIXES = ("#if", "#el", "#endif")


@dataclass(frozen=True)
class Directive:
    kind: DirectiveKind
    condition: Condition | None = None

    @property
    def is_conditional(self) -> bool:
        return self.kind in _CONDITIONAL_KINDS


def parse_directive(line: str) -> Directive | None:
    """Classify a cleaned line as one of the directives tracked here.

    ``#if`` and ``#elif`` operands of ``0`` and ``1`` become forced branches;
    any other operand is kept as an opaque symbol with its spaces removed.
    A missing operand is a forced-false branch so the block still nests.
    """
    if not line.startswith("#"):
        return None
    for keyword, kind in _DIRECTIVE_KEYWORDS:
        if not line.startswith(keyword):
            continue
        rest = line[len(keyword) :]
        starts = _EXPRESSION_STARTS if kind in _EXPRESSION_KINDS else (" ",)
        if rest and not rest.startswith(starts):
            continue
        if kind not in _CONDITION_KINDS:
            return Directive(kind)
        return Directive(kind, _parse_condition(kind, rest.replace(" ", "")))
    return None


def _parse_condition(kind: DirectiveKind, operand: str) -> Condition:
    if not operand:
        return FORCED_FALSE
    if kind in _EXPRESSION_KINDS:
        if operand == "0":
            return FORCED_FALSE
        if operand == "1":
            return FORCED_TRUE
    return Condition.symbol(operand)


def configuration_key(stack: list[Condition]) -> str | None:
    """Join the symbols of ``stack``; ``None`` when a branch is forced off."""
    names: list[str] = []
    for condition in stack:
        if condition.kind == ConditionKind.FORCED_FALSE:
            return None
        if condition.kind == ConditionKind.FORCED_TRUE:
            continue
        names.append(condition.name)
    return ";".join(names)


def enumerate_configurations(text: str) -> list[str]:
    configurations: dict[str, None] = {"": None}
    stack: list[Condition] = []
    for line in split_lines(text):
        directive = parse_directive(line)
        if directive is None:
            continue
        if directive.kind in _CONDITION_KINDS:
            assert directive.condition is not None
            if directive.kind == DirectiveKind.ELIF and stack:
                stack.pop()
            stack.append(directive.condition)
            key = configuration_key(stack)
            if key is not None:
                configurations.setdefault(key, None)
        elif directive.kind == DirectiveKind.ELSE and stack:
            stack[-1] = stack[-1].flipped()
        elif directive.kind == DirectiveKind.ENDIF and stack:
            stack.pop()
    log.debug("found %d configuration(s)", len(configurations))
    return list(configurations)


def matches(configuration: str, condition: Condition) -> bool:
    if condition.kind == ConditionKind.FORCED_FALSE:
        return False
    if condition.kind == ConditionKind.FORCED_TRUE:
        return True
    if not configuration:
        return False
    return condition.name in configuration.split(";")


def select_configuration(text: str, configuration: str) -> str:
    """Return the code of ``text`` that belongs to ``configuration``.

    Conditional directive lines and lines in unselected branches come back
    empty, so the result has the same line numbering as ``text``.
    """
    out: list[str] = []
    match = True
    matching: list[bool] = []
    matched: list[bool] = []
    for line in split_lines(text):
        directive = parse_directive(line)
        if directive is not None and directive.kind in _CONDITION_KINDS:
            assert directive.condition is not None
            taken = matches(configuration, directive.condition)
            if directive.kind == DirectiveKind.ELIF:
                if matched and matched[-1]:
                    matching[-1] = False
                elif matched:
                    matching[-1] = taken
                    matched[-1] = taken
            else:
                if directive.kind == DirectiveKind.IFNDEF:
                    taken = not taken
                matching.append(taken)
                matched.append(taken)
        elif directive is not None and directive.kind == DirectiveKind.ELSE:
            if matched:
                matching[-1] = not matched[-1]
        elif directive is not None and directive.kind == DirectiveKind.ENDIF:
            if matched:
                matched.pop()
                matching.pop()
        if line.startswith("#"):
            match = all(matching)
        if not match or line.startswith(_CONDITIONAL_PREFIXES):
            line = ""
        out.append(line + "\n")
    return "".join(out)


def split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def split_configuration(configuration: str) -> list[str]:
    if not configuration:
        return []
    return configuration.split(";")


def validate_configuration(configuration: str, *, filename: str = "<input>") -> str:
    for segment in split_configuration(configuration):
        if _CONFIG_SEGMENT_RE.fullmatch(segment) is None:
            raise ConfigurationError(
                Diagnostic(
                    "config",
                    filename,
                    f"Invalid configuration key: {configuration!r}",
                    code=_PP_INVALID_CONFIGURATION,
                )
            )
    return configuration
