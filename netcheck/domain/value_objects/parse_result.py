from pydantic import BaseModel, Field

StructuredValue = bool | int | float | str
StructuredFacts = dict[str, StructuredValue]


class ParseResult(BaseModel, frozen=True):
    structured: StructuredFacts = Field(default_factory=dict)
    diagnosis: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
