"""
Service des dépenses: validation, enregistrement et contrôle du budget mensuel
"""
from datetime import date
from typing import List, Optional
import logging

from database.crud import BudgetRepository, CategoryRepository, ExpenseRepository
from database.models import ExpenseModel
from models.budget import STATUS_EXCEEDED
from models.errors import InvalidCategoryError, InvalidPaymentModeError, NotFoundError
from models.expense import ExpenseCreate, ExpenseFilter, ExpenseUpdate, PaymentMode
from services.budget_service import evaluate_budget

logger = logging.getLogger(__name__)

BUDGET_EXCEEDED_WARNING = "Attention : budget mensuel dépassé !"


class ExpenseService:
    def __init__(
        self,
        expense_repo: ExpenseRepository,
        category_repo: CategoryRepository,
        budget_repo: BudgetRepository,
    ):
        self.expense_repo = expense_repo
        self.category_repo = category_repo
        self.budget_repo = budget_repo

    def _check_payment_mode(self, payment_mode: str):
        if not PaymentMode.is_valid(payment_mode):
            raise InvalidPaymentModeError(f"Mode de paiement invalide: {payment_mode!r} (UPI ou Cash)")

    def _check_category(self, category_id: int):
        try:
            self.category_repo.get_by_id(category_id)
        except NotFoundError:
            raise InvalidCategoryError(f"La catégorie {category_id} n'existe pas")

    def create_expense(self, expense: ExpenseCreate) -> ExpenseModel:
        """
        Crée une dépense puis vérifie le budget du mois concerné.
        Si le budget est dépassé, un avertissement est ajouté à la dépense retournée.
        """
        self._check_payment_mode(expense.payment_mode)
        self._check_category(expense.category_id)

        db_expense = self.expense_repo.create(ExpenseModel(
            category_id=expense.category_id,
            amount=expense.amount,
            description=expense.description,
            payment_mode=expense.payment_mode,
            expense_date=expense.expense_date or date.today(),
        ))
        logger.info(f"Dépense créée: id={db_expense.id}, montant={db_expense.amount}")

        db_expense.warning = self._check_budget(db_expense)
        return db_expense

    def get_expenses(self, expense_filter: Optional[ExpenseFilter] = None) -> List[ExpenseModel]:
        return self.expense_repo.get_all(expense_filter or ExpenseFilter())

    def get_expense_by_id(self, expense_id: int) -> ExpenseModel:
        return self.expense_repo.get_by_id(expense_id)

    def update_expense(self, expense_id: int, update: ExpenseUpdate) -> ExpenseModel:
        """
        Mise à jour partielle: seuls les champs présents dans la requête sont
        appliqués. Un montant à 0 ou une description vide sont donc pris en compte;
        une valeur null est ignorée.
        """
        db_expense = self.expense_repo.get_by_id(expense_id)

        changes = {
            field: value
            for field, value in update.model_dump(exclude_unset=True).items()
            if value is not None
        }

        if 'payment_mode' in changes:
            self._check_payment_mode(changes['payment_mode'])
        if 'category_id' in changes:
            self._check_category(changes['category_id'])

        for field, value in changes.items():
            setattr(db_expense, field, value)

        db_expense = self.expense_repo.update(db_expense)
        logger.info(f"Dépense {expense_id} mise à jour: {sorted(changes)}")

        db_expense.warning = self._check_budget(db_expense)
        return db_expense

    def delete_expense(self, expense_id: int):
        self.expense_repo.get_by_id(expense_id)
        self.expense_repo.delete(expense_id)
        logger.info(f"Dépense {expense_id} supprimée")

    def _check_budget(self, expense: ExpenseModel) -> Optional[str]:
        """
        Contrôle indicatif du budget du mois de la dépense.
        Ne lève jamais d'exception: la dépense est déjà enregistrée.
        """
        expense_id = expense.id
        month = expense.expense_date.month
        year = expense.expense_date.year
        try:
            try:
                budget = self.budget_repo.get_by_month(month, year)
            except NotFoundError:
                logger.debug(f"Pas de budget pour {month:02d}/{year}, aucun contrôle")
                return None

            spent_amount = self.expense_repo.get_total_by_month(month, year)
            if evaluate_budget(budget.budget_amount, spent_amount) == STATUS_EXCEEDED:
                logger.warning(
                    f"Budget {month:02d}/{year} dépassé: {spent_amount} > {budget.budget_amount}"
                )
                return BUDGET_EXCEEDED_WARNING
        except Exception as e:
            logger.warning(f"Contrôle du budget impossible pour la dépense {expense_id}: {str(e)}")
        return None
