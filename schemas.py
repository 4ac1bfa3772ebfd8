from pydantic import BaseModel, ConfigDict, Field


class GasPriceSample(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True, allow_inf_nan=False)

    fast: float
    fastest: float
    safe_low: float = Field(alias="safeLow")
    average: float
    block_time: float
    block_num: float = Field(alias="blockNum")
    speed: float


class PersistedSample(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ts: int
    fast: float
    fastest: float
    safe_low: float
    average: float


class ChartConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    height: int = Field(default=15, ge=1)
    width: int = Field(default=100, ge=0)
    caption: str = "realtime eth gas price over time (Gwei per gas)"
    offset: int = Field(default=3, ge=1)
    precision: int = Field(default=2, ge=0)
    window_size: int = Field(default=100, ge=0)
    fps: float = 24.0
    clear_screen: bool = True
