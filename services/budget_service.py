from decimal import Decimal
from typing import List
import logging

from database.crud import BudgetRepository, ExpenseRepository
from database.models import BudgetModel
from models.budget import Budget, BudgetStatus, STATUS_EXCEEDED, STATUS_WITHIN_BUDGET
from models.errors import InvalidInputError

logger = logging.getLogger(__name__)


def evaluate_budget(budget_amount: Decimal, spent_amount: Decimal) -> str:
    """Le budget n'est dépassé que si la dépense est strictement supérieure"""
    if spent_amount > budget_amount:
        return STATUS_EXCEEDED
    return STATUS_WITHIN_BUDGET


class BudgetService:
    """Gestion des budgets mensuels et de leur consommation"""

    def __init__(self, budget_repo: BudgetRepository, expense_repo: ExpenseRepository):
        self.budget_repo = budget_repo
        self.expense_repo = expense_repo

    def create_or_update_budget(self, month: int, year: int, budget_amount: Decimal) -> BudgetModel:
        """
        Crée le budget de la période, ou remplace son montant s'il existe déjà.
        Un seul budget par (mois, année).
        """
        if month < 1 or month > 12:
            raise InvalidInputError(f"Mois invalide: {month} (attendu entre 1 et 12)")
        if budget_amount < 0:
            raise InvalidInputError("Le montant du budget ne peut pas être négatif")

        budget = self.budget_repo.upsert(month, year, budget_amount)
        logger.info(f"Budget {month:02d}/{year} enregistré: {budget.budget_amount} (id={budget.id})")
        return budget

    def get_budgets(self) -> List[BudgetModel]:
        return self.budget_repo.get_all()

    def get_budget_by_month(self, month: int, year: int) -> BudgetStatus:
        """
        Récupère le budget d'un mois avec le montant dépensé, le reste et le statut.
        Lève NotFoundError s'il n'existe pas de budget pour ce mois.
        """
        budget = self.budget_repo.get_by_month(month, year)
        spent_amount = self.expense_repo.get_total_by_month(month, year)

        return BudgetStatus(
            budget=Budget.model_validate(budget),
            spent_amount=spent_amount,
            remaining=budget.budget_amount - spent_amount,
            status=evaluate_budget(budget.budget_amount, spent_amount),
        )

    def delete_budget(self, budget_id: int):
        """Supprime un budget, même si des dépenses existent pour ce mois"""
        self.budget_repo.get_by_id(budget_id)
        self.budget_repo.delete(budget_id)
        logger.info(f"Budget {budget_id} supprimé")
