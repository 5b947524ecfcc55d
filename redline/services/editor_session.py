"""
In-memory state for one editing session: the parsed analysis, the user's
accept/reject decisions, and the resume draft being built.
"""
import itertools
import logging
import time
from typing import Dict, List, Optional

from redline.config.section_keywords import default_title
from redline.models.resume import Contact, ResumeDraft, Section
from redline.models.suggestions import (
    Decision,
    DecisionSummary,
    Segment,
    Suggestion,
    SuggestionStateResponse,
)
from redline.utils import parsers

logger = logging.getLogger(__name__)

# optional Section fields a null update clears; the rest ignore nulls
_CLEARABLE_SECTION_FIELDS = {"subtitle", "start_date", "end_date", "location"}


class UnknownSuggestionError(KeyError):
    pass


class UnknownSectionError(KeyError):
    pass


class SectionIdFactory:
    """Section ids: millisecond timestamp plus a counter so bulk creation stays unique."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._counter = itertools.count()

    def __call__(self) -> str:
        return f"section-{int(self._clock() * 1000)}-{next(self._counter)}"


class EditorSession:
    def __init__(self, id_factory: Optional[SectionIdFactory] = None):
        self.new_section_id = id_factory or SectionIdFactory()
        self.segments: List[Segment] = []
        self.suggestions: Dict[str, Suggestion] = {}
        self.analysis_text: str = ""
        self.extracted_text: str = ""
        self.draft: ResumeDraft = ResumeDraft()
        self._request_seq = itertools.count(1)
        self._latest_request: Dict[str, int] = {}

    # ---- stale response guard ----

    def begin_request(self, kind: str) -> int:
        token = next(self._request_seq)
        self._latest_request[kind] = token
        return token

    def is_current(self, kind: str, token: int) -> bool:
        return self._latest_request.get(kind) == token

    # ---- suggestions ----

    def load_analysis(self, raw_text: str, extracted_text: Optional[str] = None) -> None:
        # responses for the previous document no longer apply
        for kind in ("structure", "score"):
            self._latest_request.pop(kind, None)
        parsed = parsers.parse_suggestions(raw_text)
        self.segments = parsed.segments
        self.suggestions = parsed.suggestions
        self.analysis_text = raw_text
        if extracted_text is not None:
            self.extracted_text = extracted_text
        logger.info("Loaded analysis with %d suggestion(s)", len(self.suggestions))

    def set_decision(self, suggestion_id: str, accepted: bool) -> Suggestion:
        if suggestion_id not in self.suggestions:
            raise UnknownSuggestionError(suggestion_id)
        updated = self.suggestions[suggestion_id].decide(accepted)
        self.suggestions[suggestion_id] = updated
        return updated

    def accept_all(self) -> None:
        for suggestion_id in list(self.suggestions):
            self.set_decision(suggestion_id, True)

    def reject_all(self) -> None:
        for suggestion_id in list(self.suggestions):
            self.set_decision(suggestion_id, False)

    @property
    def pending_count(self) -> int:
        return sum(1 for s in self.suggestions.values() if s.decision is Decision.UNDECIDED)

    def summary(self) -> DecisionSummary:
        counts = {decision: 0 for decision in Decision}
        for suggestion in self.suggestions.values():
            counts[suggestion.decision] += 1
        return DecisionSummary(
            total=len(self.suggestions),
            undecided=counts[Decision.UNDECIDED],
            accepted=counts[Decision.ACCEPTED],
            rejected=counts[Decision.REJECTED],
        )

    def state(self) -> SuggestionStateResponse:
        return SuggestionStateResponse(
            segments=self.segments,
            suggestions=self.suggestions,
            summary=self.summary(),
        )

    def resolved_text(self) -> str:
        """Document text with accepted suggestions applied; undecided and rejected keep the original."""
        out = []
        for segment in self.segments:
            suggestion = self.suggestions.get(segment.suggestion_id) if segment.suggestion_id else None
            if suggestion is not None and suggestion.decision is Decision.ACCEPTED:
                out.append(suggestion.suggestion)
            else:
                out.append(segment.text)
        return "".join(out)

    def reset(self) -> None:
        self.segments = []
        self.suggestions = {}
        self.analysis_text = ""
        self.extracted_text = ""
        self.draft = ResumeDraft()
        self._latest_request.clear()

    # ---- draft ----

    def new_draft(self) -> ResumeDraft:
        self.draft = ResumeDraft()
        return self.draft

    def replace_draft(self, draft: ResumeDraft) -> ResumeDraft:
        # ids are always assigned locally
        sections = [s.model_copy(update={"id": self.new_section_id()}) for s in draft.sections]
        self.draft = ResumeDraft(contact=draft.contact, sections=sections)
        return self.draft

    def update_contact(self, **fields) -> Contact:
        data = self.draft.contact.model_dump()
        data.update({k: v for k, v in fields.items() if v is not None})
        self.draft.contact = Contact(**data)
        return self.draft.contact

    def _section_index(self, section_id: str) -> int:
        for i, section in enumerate(self.draft.sections):
            if section.id == section_id:
                return i
        raise UnknownSectionError(section_id)

    def add_section(self, section_type: str, title: Optional[str] = None) -> Section:
        section = Section(
            id=self.new_section_id(),
            type=section_type,
            title=title or default_title(section_type),
        )
        self.draft.sections.append(section)
        return section

    def update_section(self, section_id: str, **fields) -> Section:
        index = self._section_index(section_id)
        data = self.draft.sections[index].model_dump()
        data.update({k: v for k, v in fields.items() if v is not None or k in _CLEARABLE_SECTION_FIELDS})
        data["id"] = section_id
        section = Section(**data)
        self.draft.sections[index] = section
        return section

    def remove_section(self, section_id: str) -> None:
        del self.draft.sections[self._section_index(section_id)]

    def move_section(self, section_id: str, index: int) -> List[Section]:
        section = self.draft.sections.pop(self._section_index(section_id))
        index = max(0, min(index, len(self.draft.sections)))
        self.draft.sections.insert(index, section)
        return self.draft.sections


_session = EditorSession()


def get_editor_session() -> EditorSession:
    return _session
