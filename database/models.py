from datetime import datetime

from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint,
)
from database.database import Base


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class ExpenseModel(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("payment_mode IN ('UPI', 'Cash')", name="ck_expenses_payment_mode"),
    )

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=False, default="")
    payment_mode = Column(String(10), nullable=False)
    expense_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Avertissement budgétaire calculé à la volée, jamais persisté
    warning = None


class BudgetModel(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("month", "year", name="uq_budgets_month_year"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)  # ex: 2025
    budget_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)
