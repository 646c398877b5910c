"""
Pydantic schemas for expense split methods.

A split describes how an expense total is divided among members. Every
variant is resolved to concrete per-user amounts before reaching the debt
engine, which only sees the resulting shares.
"""
from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Union


class EqualSplit(BaseModel):
    """Split the total equally; leftover cents go to the first users."""
    method: Literal["equal"] = "equal"
    user_ids: List[str]


class FixedSplit(BaseModel):
    """Explicit amount per user; must add up to the total."""
    method: Literal["fixed"] = "fixed"
    amounts: Dict[str, float]


class PercentageSplit(BaseModel):
    """Percentage per user; must add up to 100."""
    method: Literal["percentage"] = "percentage"
    percents: Dict[str, float]


SplitMethod = Annotated[
    Union[EqualSplit, FixedSplit, PercentageSplit],
    Field(discriminator="method")
]
