from typing import Annotated, NamedTuple, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TOPIC_LENGTH = 500
MAX_CONTEXT_ITEMS = 100
MAX_CONTEXT_ITEM_LENGTH = 199


class GenerationRequest(BaseModel):
    topic: str = Field(..., min_length=1, max_length=MAX_TOPIC_LENGTH, description="Topic to study")
    # Fronts of cards the student has already seen, used to steer away from repeats
    context: Optional[
        Annotated[list[Annotated[str, Field(max_length=MAX_CONTEXT_ITEM_LENGTH)]], Field(max_length=MAX_CONTEXT_ITEMS)]
    ] = None

    @field_validator("topic")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("topic must not be blank")
        return v.strip()


class Flashcard(BaseModel):
    model_config = ConfigDict(frozen=True)

    front: str
    back: str
    code: str = ""


class ProviderUsage(BaseModel):
    """Token counts reported by the provider stream. Zeros mean unknown."""

    input_tokens: int = 0
    output_tokens: int = 0


class CostRates(NamedTuple):
    """USD per million tokens for one provider."""

    input_per_million: float
    output_per_million: float
