from pydantic import BaseModel, Field

TARGET_PATTERN = r"^[a-zA-Z0-9._:/-]+$"


class CommandInput(BaseModel, frozen=True):
    """Validated user input for one check run."""

    target: str = Field(min_length=1, max_length=253, pattern=TARGET_PATTERN)
    count: int = Field(default=4, ge=1, le=20)
    timeout_seconds: int = Field(default=10, ge=1, le=30)


class CommandInvocation(BaseModel, frozen=True):
    """How to start one process: executable, arguments, optional display line."""

    executable: str
    args: list[str] = Field(default_factory=list)
    display_line: str | None = None

    @property
    def command_line(self) -> str:
        if self.display_line:
            return self.display_line
        return " ".join([self.executable, *self.args]).strip()
