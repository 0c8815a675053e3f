from pydantic import BaseModel
from datetime import datetime
from typing import Literal

from models.money import Money

STATUS_WITHIN_BUDGET = "within_budget"
STATUS_EXCEEDED = "exceeded"


class BudgetBase(BaseModel):
    month: int
    year: int
    budget_amount: Money


class BudgetCreate(BudgetBase):
    pass


class Budget(BudgetBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BudgetStatus(BaseModel):
    budget: Budget
    spent_amount: Money
    remaining: Money
    status: Literal["within_budget", "exceeded"]
