from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, computed_field


class Decision(str, Enum):
    """User decision on a suggestion"""
    UNDECIDED = "undecided"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Segment(BaseModel):
    """Contiguous run of display text produced by the suggestion parser"""
    model_config = {"frozen": True}

    text: str
    kind: Literal["regular", "highlight"]
    suggestion_id: Optional[str] = None


class Suggestion(BaseModel):
    """Proposed replacement for one span of the original text"""
    model_config = {"frozen": True}

    id: str
    original: str
    suggestion: str
    decision: Decision = Decision.UNDECIDED

    @computed_field
    @property
    def accepted(self) -> Optional[bool]:
        # null while undecided, mirrors the tri-state flag clients expect
        if self.decision is Decision.UNDECIDED:
            return None
        return self.decision is Decision.ACCEPTED

    def decide(self, accepted: bool) -> "Suggestion":
        decision = Decision.ACCEPTED if accepted else Decision.REJECTED
        return self.model_copy(update={"decision": decision})


class DecisionSummary(BaseModel):
    total: int = 0
    undecided: int = 0
    accepted: int = 0
    rejected: int = 0


class SuggestionStateResponse(BaseModel):
    """Everything the review view needs to render the annotated resume"""
    segments: List[Segment]
    suggestions: Dict[str, Suggestion]
    summary: DecisionSummary


class DecisionRequest(BaseModel):
    accepted: bool


class AnalyzeTextRequest(BaseModel):
    """Annotated text supplied directly instead of a PDF upload"""
    text: str
