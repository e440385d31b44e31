from dataclasses import dataclass


@dataclass(frozen=True)
class Diagnostic:
    stage: str
    filename: str
    message: str
    code: str | None = None

    def __str__(self) -> str:
        return f"{self.filename}: {self.stage}: {self.message}"

    def as_dict(self) -> dict[str, str | None]:
        return {
            "stage": self.stage,
            "filename": self.filename,
            "code": self.code,
            "message": self.message,
        }


class ConfigurationError(ValueError):
    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic
