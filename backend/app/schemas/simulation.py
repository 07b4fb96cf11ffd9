from typing import Any, Literal

from pydantic import BaseModel, Field


class ContractRequest(BaseModel):
    quantity: float = Field(default=0.0, ge=0)
    price: float | None = None


class BatteryModeRequest(BaseModel):
    mode: str = Field(max_length=32)


class OverridesRequest(BaseModel):
    gas: float | None = Field(default=None, ge=0)
    reserve: float | None = Field(default=None, ge=0, le=100)
    outage: float | None = Field(default=None, ge=0)
    tx: float | None = Field(default=None, ge=0)


class TickerRequest(BaseModel):
    speed: float = Field(default=1.0, gt=0, le=32)


class ActionResponse(BaseModel):
    ok: bool
    reason: str = ""


class SessionResponse(BaseModel):
    id: str
    status: Literal["pre-run", "running", "paused", "done"]
    snapshot: dict[str, Any]


class TickerResponse(BaseModel):
    running: bool
    speed: float
    interval_s: float


class ScoreResponse(BaseModel):
    reliability: float
    cost_score: float
    emissions_score: float
    total: float
    badges: list[str]
