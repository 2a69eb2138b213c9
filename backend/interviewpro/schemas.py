from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)
    role: Literal["user", "assistant"]
    content: str


class InterviewRequest(BaseModel):
    model_config = ConfigDict(frozen=True)
    messages: tuple[ConversationTurn, ...] = ()
    job_title: str
    industry: str = "General"
    experience_level: str = "Mid-level"
    interview_type: str = "Behavioral and Technical"
    voice: Optional[str] = None


class QuickAnswerRequest(BaseModel):
    model_config = ConfigDict(frozen=True)
    question: str
    job_title: str = "Professional"
    industry: str = "General"


class SpeechRequest(BaseModel):
    model_config = ConfigDict(frozen=True)
    text: str
    voice: str = "nova"


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ChatCompletion(BaseModel):
    text: str = ""
    usage: Usage = Usage()
