from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    # Left untyped; the batch validator owns the shape checks and their messages
    messages: Any = None
    session_id: str | None = None


class ChatResponse(BaseModel):
    response: str
    trace_id: str
    cached: bool = False
    remaining: int | None = None


class ChatErrorResponse(BaseModel):
    error: str
    trace_id: str
    reset_at: float | None = None


class EvalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case_ids: list[str] | None = Field(default=None, validation_alias="caseIds")
    max_cases: int | None = Field(default=None, validation_alias="maxCases")
    include_responses: bool = Field(default=False, validation_alias="includeResponses")
    temperature: float | None = None
    max_output_tokens: int | None = Field(default=None, validation_alias="maxOutputTokens")


class SaveEmailRequest(BaseModel):
    session_id: str | None = None
    email: str | None = None


class RagRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Non-string queries count as empty; a non-numeric topK falls back to the default
    query: Any = None
    top_k: Any = Field(default=5, validation_alias="topK")


class RagResponse(BaseModel):
    context: str
    source: str
    top_k: int


class ExplainErrorRequest(BaseModel):
    error_text: Any = None


class ExplainErrorResponse(BaseModel):
    explanation: str
