"""
Turning model output into a ResumeDraft or ResumeScore, with local recovery
when the output is unusable. The model call itself sits behind ResumeAI.
"""
import logging
import math
from typing import Callable, List

from pydantic import ValidationError

from redline.config.section_keywords import SCORE_CRITERIA, SECTION_TYPES, default_title
from redline.models.resume import Contact, CriterionScore, ResumeDraft, ResumeScore, Section
from redline.services.ai_service import AIServiceError, ResumeAI
from redline.utils.parsers import extract_json_object, fallback_sections

logger = logging.getLogger(__name__)

SCORE_UNAVAILABLE_MESSAGE = "Score unavailable: the scoring response could not be read. Please try again."

_TEXT_FIELDS = ("subtitle", "content", "start_date", "end_date", "location")


def _contact_from(data: dict) -> Contact:
    fields = {}
    for key in ("name", "email", "phone", "location"):
        value = data.get(key)
        fields[key] = str(value).strip() if value is not None else ""
    return Contact(**fields)


def _sections_from(items: list, new_id: Callable[[], str]) -> List[Section]:
    sections = []
    for item in items:
        if not isinstance(item, dict):
            continue
        section_type = str(item.get("type", "")).strip().lower()
        if section_type not in SECTION_TYPES:
            logger.debug("Skipping section with unknown type %r", section_type)
            continue
        data = {k: v for k, v in item.items() if k != "id" and v is not None}
        data["type"] = section_type
        data["title"] = str(data.get("title") or default_title(section_type))
        if isinstance(data.get("content"), list):
            data["content"] = "\n".join(str(line) for line in data["content"])
        for key in _TEXT_FIELDS:
            if key in data and not isinstance(data[key], str):
                data[key] = str(data[key])
        try:
            sections.append(Section(id=new_id(), **data))
        except ValidationError as e:
            logger.debug("Skipping invalid section: %s", e)
    return sections


def fallback_draft(source_text: str, new_id: Callable[[], str]) -> ResumeDraft:
    return ResumeDraft(contact=Contact(), sections=fallback_sections(source_text, new_id))


def draft_from_response(raw: str, source_text: str, new_id: Callable[[], str]) -> ResumeDraft:
    """
    Build a draft from the structuring call's output. Requires a "contact"
    object and a "sections" list; anything else falls back to keyword
    segmentation of source_text. Section ids from the model are discarded.
    """
    data = extract_json_object(raw)
    if data is None or not isinstance(data.get("contact"), dict) or not isinstance(data.get("sections"), list):
        logger.warning("Structuring response unusable, using fallback segmentation")
        return fallback_draft(source_text, new_id)
    return ResumeDraft(
        contact=_contact_from(data["contact"]),
        sections=_sections_from(data["sections"], new_id),
    )


async def structure_draft(ai: ResumeAI, text: str, new_id: Callable[[], str]) -> ResumeDraft:
    try:
        raw = await ai.structure_resume(text)
    except AIServiceError as e:
        logger.warning("Structuring call failed (%s), using fallback segmentation", e)
        return fallback_draft(text, new_id)
    return draft_from_response(raw, text, new_id)


def zero_score(message: str = SCORE_UNAVAILABLE_MESSAGE) -> ResumeScore:
    return ResumeScore(
        overall=0,
        criteria={name: CriterionScore(score=0, feedback=message) for name in SCORE_CRITERIA},
    )


def _clamp(value) -> int:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"score is not finite: {value!r}")
    return max(0, min(100, int(round(number))))


def score_from_response(raw: str) -> ResumeScore:
    data = extract_json_object(raw)
    if data is None or not isinstance(data.get("criteria"), dict):
        logger.warning("Score response unusable, substituting zero score")
        return zero_score()
    try:
        criteria = {}
        for name in SCORE_CRITERIA:
            entry = data["criteria"].get(name)
            if isinstance(entry, dict):
                criteria[name] = CriterionScore(
                    score=_clamp(entry.get("score", 0)),
                    feedback=str(entry.get("feedback") or ""),
                )
            elif entry is not None:
                criteria[name] = CriterionScore(score=_clamp(entry))
            else:
                criteria[name] = CriterionScore(score=0, feedback="Not scored.")
        overall = data.get("overall")
        if overall is None:
            overall = sum(c.score for c in criteria.values()) / len(criteria)
        return ResumeScore(overall=_clamp(overall), criteria=criteria)
    except (TypeError, ValueError) as e:
        logger.warning("Score response malformed (%s), substituting zero score", e)
        return zero_score()


async def score_draft_text(ai: ResumeAI, text: str) -> ResumeScore:
    # call failures propagate; only unreadable output is recovered here
    raw = await ai.score_resume(text)
    return score_from_response(raw)
