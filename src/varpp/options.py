from dataclasses import dataclass
from typing import Literal

DiagFormat = Literal["human", "json"]


@dataclass(frozen=True)
class PreprocessOptions:
    jobs: int = 1
    expand_macros: bool = True
    diag_format: DiagFormat = "human"

    def __post_init__(self) -> None:
        if self.jobs < 1:
            raise ValueError(f"Invalid job count: {self.jobs}")
        if self.diag_format not in {"human", "json"}:
            raise ValueError(f"Unsupported diagnostic format: {self.diag_format}")


def normalize_options(options: PreprocessOptions | None) -> PreprocessOptions:
    return PreprocessOptions() if options is None else options
