from pydantic import BaseModel
from datetime import date, datetime
from enum import Enum
from typing import Optional

from models.money import Money


class PaymentMode(str, Enum):
    UPI = "UPI"
    CASH = "Cash"

    @classmethod
    def is_valid(cls, value) -> bool:
        return value in {mode.value for mode in cls}


class ExpenseBase(BaseModel):
    category_id: int
    amount: Money
    description: str = ""
    payment_mode: str


class ExpenseCreate(ExpenseBase):
    expense_date: Optional[date] = None  # Format YYYY-MM-DD, aujourd'hui par défaut


class ExpenseUpdate(BaseModel):
    """Mise à jour partielle: seuls les champs envoyés sont appliqués"""
    category_id: Optional[int] = None
    amount: Optional[Money] = None
    description: Optional[str] = None
    payment_mode: Optional[str] = None
    expense_date: Optional[date] = None


class Expense(ExpenseBase):
    id: int
    expense_date: date
    created_at: datetime
    warning: Optional[str] = None

    class Config:
        from_attributes = True


class ExpenseFilter(BaseModel):
    category_id: Optional[int] = None
    payment_mode: Optional[PaymentMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
