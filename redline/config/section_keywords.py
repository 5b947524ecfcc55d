"""
Resume section vocabulary: the section types the builder knows, the keywords the
fallback segmentation looks for, and the criteria a resume score reports.
Add or edit entries here to support new sections without touching parser logic.
"""
from typing import Dict, List, Tuple

# Section types accepted in a draft, in the order the builder offers them.
SECTION_TYPES: Tuple[str, ...] = (
    "experience",
    "education",
    "skills",
    "projects",
    "certifications",
)

# Keywords checked (in this priority order) against each lowercased fragment
# when the structuring call fails. First match wins.
FALLBACK_SECTION_KEYWORDS: List[str] = [
    "experience",
    "education",
    "skills",
]

# Title used for a section created without one.
DEFAULT_SECTION_TITLES: Dict[str, str] = {
    "experience": "Experience",
    "education": "Education",
    "skills": "Skills",
    "projects": "Projects",
    "certifications": "Certifications",
}

# Criteria reported by the scoring call; scores are integers 0..100.
SCORE_CRITERIA: List[str] = [
    "content",
    "formatting",
    "keywords",
    "impact",
]


def get_fallback_keywords() -> List[str]:
    """Return the fallback keyword priority list (copy, safe to mutate)."""
    return list(FALLBACK_SECTION_KEYWORDS)


def default_title(section_type: str) -> str:
    return DEFAULT_SECTION_TITLES.get(section_type, section_type.capitalize())
