"""
Rule parsing.

The TESLA rule language is compiled by the server; the client only needs to
turn rule text into a RulePacket. TeslaRuleParser performs the structural
checks that catch obviously broken rule files before they are sent.
"""

import logging
import re
from typing import Optional, Protocol

from .models import RulePacket
from .types import Const
from ..exceptions import TRexParseError


class RuleParser(Protocol):
    def parse(self, rule_text: str, assigned_id: int) -> RulePacket: ...


class TeslaRuleParser:

    # Clauses every TESLA rule definition must contain
    REQUIRED_CLAUSES = ("Define", "From")

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def parse(self, rule_text: str, assigned_id: int) -> RulePacket:
        if isinstance(assigned_id, bool) or not isinstance(assigned_id, int) or not 0 <= assigned_id <= Const.MAX_INT:
            raise TRexParseError(f"Invalid rule id {assigned_id!r}, must be an integer between 0 and {Const.MAX_INT}")
        if not rule_text or not rule_text.strip():
            raise TRexParseError("Rule text is empty")
        for clause in self.REQUIRED_CLAUSES:
            if not re.search(rf"\b{clause}\b", rule_text):
                raise TRexParseError(f"Rule is missing a '{clause}' clause")
        self.logger.debug(f"Parsed rule with id {assigned_id} ({len(rule_text)} chars)")
        return RulePacket(rule_text=rule_text, assigned_id=assigned_id)
