"""
Pydantic request / response schemas for the API and WebSocket envelopes.
"""

from pydantic import BaseModel, Field
from typing import Literal, Optional


# ── WebSocket envelopes (inbound) ───────────────────────
class Envelope(BaseModel):
    type: Optional[str] = None


class UserMessage(BaseModel):
    type: Literal["user_message"] = "user_message"
    text: str


class VoiceConfig(BaseModel):
    type: Literal["voice_config"] = "voice_config"
    gender: Optional[str] = None


# ── WebSocket envelopes (outbound) ──────────────────────
class AIResponse(BaseModel):
    type: Literal["ai_response"] = "ai_response"
    text: str
    source: str
    latency: float
    voiceGender: str


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str


# ── Text Chat ────────────────────────────────────────────
class TextChatRequest(BaseModel):
    message: str = Field(min_length=1)
    voice_gender: Optional[str] = None


class TextChatResponse(BaseModel):
    text: str
    source: str
    latency: float
    provenance: str
    voice_gender: str


# ── Stats ────────────────────────────────────────────────
class DatasetStats(BaseModel):
    record_count: int = 0
    marker_count: int = 0
    loaded: bool = False


class PipelineStats(BaseModel):
    cache_hits: int = 0
    cache_misses: int = 0
    hit_rate: str = "0.0%"
    llm_enabled: bool = False


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
    dataset: DatasetStats
    pipeline: PipelineStats


class AnalyticsSummary(BaseModel):
    dataset: DatasetStats
    pipeline: PipelineStats
    total_requests: int = 0
