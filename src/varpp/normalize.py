import logging
import re

log = logging.getLogger(__name__)

_IF_DEFINED_RE = re.compile(r"^#if defined\( ?(?P<name>[A-Za-z_]\w*) ?\)$", re.MULTILINE)


def normalize(text: str) -> str:
    text = expand_tabs(text)
    text = trim_leading_spaces(text)
    text = remove_space_near_newline(text)
    text = join_continuations(text)
    return replace_if_defined(text)


def expand_tabs(text: str) -> str:
    return text.replace("\t", " ")


def trim_leading_spaces(text: str) -> str:
    return text.lstrip(" ")


def remove_space_near_newline(text: str) -> str:
    out: list[str] = []
    length = len(text)
    for index, ch in enumerate(text):
        if ch == " " and (
            (out and out[-1] == "\n") or (index + 1 < length and text[index + 1] == "\n")
        ):
            continue
        out.append(ch)
    return "".join(out)


def join_continuations(text: str) -> str:
    """Join backslash-newline continuations without changing the line count.

    The removed newline is put back after the end of the joined line so the
    lines that follow keep their original numbers.
    """
    joins = 0
    while True:
        loc = text.rfind("\\\n")
        if loc < 0:
            break
        text = text[:loc] + text[loc + 2 :]
        if loc > 0 and text[loc - 1] != " ":
            text = text[:loc] + " " + text[loc:]
        end = text.find("\n", loc)
        if end < 0:
            text += "\n"
        else:
            text = text[:end] + "\n" + text[end:]
        joins += 1
    if joins:
        log.debug("joined %d continuation lines", joins)
    return text


def replace_if_defined(text: str) -> str:
    return _IF_DEFINED_RE.sub(r"#ifdef \g<name>", text)
