import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from varpp.conditionals import enumerate_configurations, select_configuration
from varpp.lexer import Tokenizer
from varpp.macros import expand_macros
from varpp.normalize import normalize
from varpp.options import PreprocessOptions, normalize_options
from varpp.reader import read

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreprocessResult:
    processed: str
    configurations: tuple[str, ...]


def preprocess_source(
    stream: TextIO | str,
    *,
    options: PreprocessOptions | None = None,
    tokenizer: Tokenizer | None = None,
) -> PreprocessResult:
    """Clean, normalize and macro-expand ``stream`` and list its configurations."""
    normalized_options = normalize_options(options)
    processed = read(stream)
    processed = normalize(processed)
    processed = expand_macros(processed, tokenizer=tokenizer, options=normalized_options)
    configurations = tuple(enumerate_configurations(processed))
    return PreprocessResult(processed, configurations)


def get_code(result: PreprocessResult, configuration: str) -> str:
    return select_configuration(result.processed, configuration)


def preprocess(
    stream: TextIO | str,
    *,
    options: PreprocessOptions | None = None,
    tokenizer: Tokenizer | None = None,
) -> dict[str, str]:
    """Map every configuration of ``stream`` to its directive-free code."""
    normalized_options = normalize_options(options)
    result = preprocess_source(stream, options=normalized_options, tokenizer=tokenizer)
    return select_configurations(result, result.configurations, jobs=normalized_options.jobs)


def select_configurations(
    result: PreprocessResult,
    configurations: tuple[str, ...] | list[str],
    *,
    jobs: int = 1,
) -> dict[str, str]:
    if jobs <= 1 or len(configurations) <= 1:
        return {cfg: get_code(result, cfg) for cfg in configurations}
    log.debug("selecting %d configurations with %d workers", len(configurations), jobs)
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        codes = list(executor.map(lambda cfg: get_code(result, cfg), configurations))
    return dict(zip(configurations, codes))


def read_source(path: str, *, stdin: TextIO | None = None) -> tuple[str, str]:
    if path == "-":
        stream = sys.stdin if stdin is None else stdin
        return "<stdin>", stream.read()
    resolved = Path(path)
    return str(resolved), resolved.read_text(encoding="utf-8")
