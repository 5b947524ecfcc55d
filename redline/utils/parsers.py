import io
import json
import logging
import re
from typing import Callable, Dict, List, NamedTuple, Optional

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from redline.config.section_keywords import default_title, get_fallback_keywords
from redline.models.resume import Section
from redline.models.suggestions import Segment, Suggestion

logger = logging.getLogger(__name__)

# [original]{suggestion}; captures may span lines but not contain their own bracket kind
SUGGESTION_MARKER = re.compile(r"\[([^\[\]]*?)\]\{([^{}]*?)\}")

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")


class PdfExtractionError(ValueError):
    """Raised when a PDF has no extractable text or cannot be read."""


class ParsedSuggestions(NamedTuple):
    segments: List[Segment]
    suggestions: Dict[str, Suggestion]


# ---- PDF text extraction ----

def extract_pdf_text(content: bytes) -> str:
    """
    Extract plain text from PDF bytes, followed by any link annotations.
    Raises PdfExtractionError when the file is unreadable or holds no text.
    """
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = list(reader.pages)
    except (PdfReadError, ValueError, OSError) as e:
        raise PdfExtractionError(f"Could not read PDF: {e}") from e

    text = ""
    links = []
    for page in pages:
        text += (page.extract_text() or "") + "\n"

        if "/Annots" in page:
            for annot in page["/Annots"]:
                obj = annot.get_object()
                if "/A" in obj and "/URI" in obj["/A"]:
                    links.append(str(obj["/A"]["/URI"]))

    if not text.strip():
        raise PdfExtractionError("No extractable text found in PDF.")

    if links:
        text += "\nLinks\n"
        for link in dict.fromkeys(links):
            text += f"{link}\n"

    return text.strip()


# ---- Suggestion markers ----

def _append_regular(parts: List[Segment], text: str) -> None:
    if not text:
        return
    if parts and parts[-1].kind == "regular":
        parts[-1] = Segment(text=parts[-1].text + text, kind="regular")
    else:
        parts.append(Segment(text=text, kind="regular"))


def parse_suggestions(response: str) -> ParsedSuggestions:
    """
    Split model output annotated with [original]{suggestion} markers into
    display segments and a suggestion table keyed by id ("0", "1", ...).

    A marker whose trimmed original or suggestion is empty is kept as plain
    text rather than dropped. Unbalanced brackets never raise; whatever does
    not match is regular text.
    """
    parts: List[Segment] = []
    suggestions: Dict[str, Suggestion] = {}
    last_index = 0

    for match in SUGGESTION_MARKER.finditer(response or ""):
        _append_regular(parts, response[last_index:match.start()])
        last_index = match.end()

        original = match.group(1).strip()
        replacement = match.group(2).strip()
        if not original or not replacement:
            _append_regular(parts, match.group(0))
            continue

        suggestion_id = str(len(suggestions))
        suggestions[suggestion_id] = Suggestion(
            id=suggestion_id, original=original, suggestion=replacement
        )
        parts.append(Segment(text=original, kind="highlight", suggestion_id=suggestion_id))

    _append_regular(parts, (response or "")[last_index:])
    return ParsedSuggestions(parts, suggestions)


def strip_suggestion_markers(response: str) -> str:
    """The document as it reads before any suggestion is applied."""
    return "".join(segment.text for segment in parse_suggestions(response).segments)


# ---- JSON recovery ----

def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw or "").strip()


def _balanced_object(text: str) -> Optional[str]:
    """Return the substring from the first '{' to its matching '}' (string aware)."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_object(raw: str) -> Optional[dict]:
    """
    Recover a JSON object from model output: strip ``` fences, try a direct
    parse, then retry on the first balanced {...} block. None on failure.
    """
    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        candidate = _balanced_object(text)
        if candidate is None:
            return None
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


# ---- Fallback segmentation ----

def _keyword_for(fragment: str, keywords: List[str]) -> Optional[str]:
    lowered = fragment.lower()
    for keyword in keywords:
        if keyword in lowered:
            return keyword
    return None


def fallback_sections(text: str, new_id: Callable[[], str]) -> List[Section]:
    """
    Last-resort segmentation used when structuring fails: every line that
    mentions experience/education/skills (that priority) opens a section of
    that type; following lines become its content. Lines before the first
    such heading are dropped.
    """
    keywords = get_fallback_keywords()
    sections: List[Section] = []
    current: Optional[dict] = None

    for fragment in (line.strip() for line in (text or "").splitlines()):
        if not fragment:
            continue
        keyword = _keyword_for(fragment, keywords)
        if keyword:
            if current:
                sections.append(Section(**current))
            current = {
                "id": new_id(),
                "type": keyword,
                "title": default_title(keyword),
                "content": fragment,
            }
        elif current:
            current["content"] += "\n" + fragment

    if current:
        sections.append(Section(**current))
    logger.warning("Fallback segmentation produced %d section(s)", len(sections))
    return sections
