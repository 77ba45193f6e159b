# smartcalc/guardrails/schemas.py
from pydantic import BaseModel, Field
from typing import List


class CalculateAnswerInput(BaseModel):
    question: str = Field(description="The math question in natural language, provided either by text or voice.")


class CalculateAnswerOutput(BaseModel):
    answer: str = Field(description="The calculated answer to the question.")


class SuggestCalculationInput(BaseModel):
    current_calculation_type: str = Field(description="The type of the current calculation being performed by the user.")
    recent_calculation_types: List[str] = Field(default_factory=list)


class SuggestCalculationOutput(BaseModel):
    suggested_calculation: str = Field(description="A suggestion for a relevant calculation based on the current and recent calculations.")
