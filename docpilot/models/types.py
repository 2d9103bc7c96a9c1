from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    id: str
    text: str
    title: Optional[str] = None
    source_id: Optional[str] = None
    chunk_index: int = 0


class RuleMatch(BaseModel):
    title: str
    text: str
    score: float
    source: str  # "vector" or "folder"
    chunk_index: Optional[int] = None


class RuleDocument(BaseModel):
    id: str
    title: str
    mime_type: str
    text: str = ""


class ContextBundle(BaseModel):
    vector_matches: List[RuleMatch] = Field(default_factory=list)
    folder_matches: List[RuleMatch] = Field(default_factory=list)
    document_id: Optional[str] = None
    document_title: Optional[str] = None
    document_text: str = ""

    def rules(self) -> List[RuleMatch]:
        return self.vector_matches + self.folder_matches

    def rules_text(self) -> str:
        parts = []
        for m in self.rules():
            parts.append(f"[{m.title}]\n{m.text.strip()}")
        return "\n\n".join(parts)

    def source_titles(self) -> List[str]:
        seen: List[str] = []
        for m in self.rules():
            if m.title not in seen:
                seen.append(m.title)
        return seen


class Issue(BaseModel):
    text: str
    rule: str = ""
    suggestion: str = ""


class AnnotationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    highlighted: int = 0
    comments: int = 0
    skipped: List[str] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)


class ChatTurn(BaseModel):
    role: str = "user"
    content: str = ""


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    conversation_history: List[ChatTurn] = Field(default_factory=list, alias="conversationHistory")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    command: Optional[str] = None
    document_id: Optional[str] = Field(default=None, alias="documentId")
    annotations: Optional[AnnotationResult] = None
    sources: List[str] = Field(default_factory=list)
    stats: Optional[Dict[str, Any]] = None


# Analytics report
class ReportPeriod(BaseModel):
    start: str
    end: str


class ReportData(BaseModel):
    current_channels: List[Dict[str, Any]] = Field(default_factory=list)
    previous_channels: List[Dict[str, Any]] = Field(default_factory=list)
    organic_search_pages: List[Dict[str, Any]] = Field(default_factory=list)
    organic_social: List[Dict[str, Any]] = Field(default_factory=list)
    unassigned_sources: List[Dict[str, Any]] = Field(default_factory=list)
    top_regions: List[Dict[str, Any]] = Field(default_factory=list)
    gender: List[Dict[str, Any]] = Field(default_factory=list)
    age: List[Dict[str, Any]] = Field(default_factory=list)
    devices: List[Dict[str, Any]] = Field(default_factory=list)
    contact_page: List[Dict[str, Any]] = Field(default_factory=list)
    current_period: ReportPeriod
    previous_period: ReportPeriod
    days: int
    filters: str = ""


class ReportRunResponse(BaseModel):
    success: bool
    message: str
    days: int
    recipients: List[str] = Field(default_factory=list)
