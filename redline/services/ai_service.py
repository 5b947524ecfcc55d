import logging
from typing import Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from redline.config.section_keywords import SCORE_CRITERIA, SECTION_TYPES
from redline.config.settings import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()
client = AsyncOpenAI(api_key=_settings.openai_api_key) if _settings.openai_api_key else None


class AIServiceError(RuntimeError):
    """Raised when the language model cannot be reached or returns nothing."""


async def get_completion(prompt: str, model: Optional[str] = None, **kwargs) -> str:
    if not client:
        raise AIServiceError("OPENAI_API_KEY not found. Please set it in the .env file.")
    try:
        response = await client.chat.completions.create(
            model=model or _settings.openai_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.4,
            **kwargs
        )
    except OpenAIError as e:
        logger.error("Error calling OpenAI API: %s", e)
        raise AIServiceError("Error generating content. Please try again.") from e
    content = response.choices[0].message.content
    if not content:
        raise AIServiceError("The model returned an empty response.")
    return content.strip()


async def critique_resume(resume_text: str) -> str:
    """
    Ask for the full resume back with inline [original]{suggestion} edits.
    """
    prompt = f"""
    # Role
    You are an expert resume editor.

    # Task
    Review the entire resume and improve its professionalism, clarity, and formatting.
    When you replace text, wrap the original in [ ] and your improved replacement
    (phrase, sentence or multi-sentence) in {{ }}.

    # Examples
    - I [worked as a software engineer]{{Served as a Software Engineer}} at Google.
    - [Objective: I am seeking a position...]{{Objective: Strategic Art Administration professional with hands-on gallery experience and strong organizational skills.}}

    # Guidelines
    1. Only annotate text that truly needs revision. Do not over-annotate.
    2. Suggestions may be concise phrases or full sentences/paragraphs.
    3. Use action verbs, quantify achievements, and enforce consistent formatting (dates, headings).
    4. Replace placeholders like [Year] with a clear prompt (e.g. "complete date") instead of leaving brackets.
    5. Preserve key industry terms.
    6. Return ONLY the resume text with inline [original]{{suggestion}} edits. No extra commentary.

    # Input Data
    <resume>
    {resume_text}
    </resume>
    """
    return await get_completion(prompt)


async def structure_resume(resume_text: str) -> str:
    section_types = " | ".join(SECTION_TYPES)
    prompt = f"""
    # Role
    You are a resume parser.

    # Task
    Convert the resume text into a single JSON object.

    # Constraints
    - Return ONLY valid JSON. No explanatory text.
    - Do not invent content that is not in the resume.
    - Use one section per job, degree, project or certification; one section for all skills.

    # Output Format
    {{
      "contact": {{"name": "", "email": "", "phone": "", "location": ""}},
      "sections": [
        {{
          "type": "{section_types}",
          "title": "role, degree or heading",
          "subtitle": "company or school (optional)",
          "content": "bullet points or description",
          "start_date": "optional",
          "end_date": "optional",
          "location": "optional"
        }}
      ]
    }}

    # Input Data
    <resume>
    {resume_text}
    </resume>
    """
    return await get_completion(prompt, response_format={"type": "json_object"})


async def score_resume(resume_text: str) -> str:
    criteria = ", ".join(f'"{name}": {{"score": 0, "feedback": ""}}' for name in SCORE_CRITERIA)
    prompt = f"""
    # Role
    You are a professional resume reviewer.

    # Task
    Score the resume from 0 to 100 overall and for each criterion, with one
    sentence of feedback per criterion.

    # Constraints
    - Return ONLY valid JSON. No explanatory text.
    - Scores are integers between 0 and 100.

    # Output Format
    {{"overall": 0, "criteria": {{{criteria}}}}}

    # Input Data
    <resume>
    {resume_text}
    </resume>
    """
    return await get_completion(prompt, response_format={"type": "json_object"})


class ResumeAI(Protocol):
    """What the app needs from a language model; each call returns raw model text."""

    async def critique_resume(self, resume_text: str) -> str: ...

    async def structure_resume(self, resume_text: str) -> str: ...

    async def score_resume(self, resume_text: str) -> str: ...


class OpenAIResumeAI:
    async def critique_resume(self, resume_text: str) -> str:
        return await critique_resume(resume_text)

    async def structure_resume(self, resume_text: str) -> str:
        return await structure_resume(resume_text)

    async def score_resume(self, resume_text: str) -> str:
        return await score_resume(resume_text)


def get_resume_ai() -> ResumeAI:
    return OpenAIResumeAI()
