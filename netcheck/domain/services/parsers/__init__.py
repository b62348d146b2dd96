from netcheck.domain.services.parsers.common import ParseContext, Parser
from netcheck.domain.services.parsers.connectivity import LossClass, classify_loss
from netcheck.domain.services.parsers.registry import PARSERS, parse_output

__all__ = [
    "LossClass",
    "PARSERS",
    "ParseContext",
    "Parser",
    "classify_loss",
    "parse_output",
]
