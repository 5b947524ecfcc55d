from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

SectionType = Literal["experience", "education", "skills", "projects", "certifications"]


class Contact(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""


class Section(BaseModel):
    """One block of the resume builder (a job, a degree, a skills list...)"""
    id: str
    type: SectionType
    title: str
    subtitle: Optional[str] = None
    content: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None


class ResumeDraft(BaseModel):
    """Structured resume used by the builder and the exporters"""
    contact: Contact = Field(default_factory=Contact)
    sections: List[Section] = Field(default_factory=list)


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class SectionCreate(BaseModel):
    type: SectionType
    title: Optional[str] = None


class SectionUpdate(BaseModel):
    type: Optional[SectionType] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    content: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None


class SectionMove(BaseModel):
    index: int


class TransferRequest(BaseModel):
    """Which text feeds the structuring call"""
    source: Literal["resolved", "extracted"] = "resolved"


class CriterionScore(BaseModel):
    score: int = Field(ge=0, le=100)
    feedback: str = ""


class ResumeScore(BaseModel):
    overall: int = Field(ge=0, le=100)
    criteria: Dict[str, CriterionScore]
