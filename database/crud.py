from contextlib import contextmanager
from decimal import Decimal
from datetime import datetime
from typing import List
import logging

from sqlalchemy import extract, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import CategoryModel, ExpenseModel, BudgetModel
from models.errors import (
    ConflictError, DuplicateBudgetError, ExpenseTrackerError, NotFoundError, StorageError,
)
from models.expense import ExpenseFilter
from models.money import round_to_cents

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(db: Session, conflict_error=ConflictError):
    """Traduit les erreurs SQLAlchemy en erreurs de stockage de l'application"""
    try:
        yield
    except ExpenseTrackerError:
        raise
    except IntegrityError as e:
        db.rollback()
        raise conflict_error(str(e.orig)) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(str(e)) from e


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, category: CategoryModel) -> CategoryModel:
        """Crée une nouvelle catégorie"""
        with storage_errors(self.db):
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
        return category

    def get_by_id(self, category_id: int) -> CategoryModel:
        """Récupère une catégorie par son ID"""
        with storage_errors(self.db):
            category = self.db.get(CategoryModel, category_id)
        if category is None:
            raise NotFoundError(f"Catégorie {category_id} non trouvée")
        return category

    def get_all(self) -> List[CategoryModel]:
        """Récupère toutes les catégories, triées par nom"""
        with storage_errors(self.db):
            return self.db.query(CategoryModel).order_by(CategoryModel.name).all()

    def update(self, category: CategoryModel) -> CategoryModel:
        with storage_errors(self.db):
            self.db.commit()
            self.db.refresh(category)
        return category

    def delete(self, category_id: int):
        """Supprime une catégorie (les dépenses associées suivent en cascade)"""
        with storage_errors(self.db):
            count = self.db.query(CategoryModel).filter(CategoryModel.id == category_id).delete()
            if not count:
                raise NotFoundError(f"Catégorie {category_id} non trouvée")
            self.db.commit()


class ExpenseRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, expense: ExpenseModel) -> ExpenseModel:
        """Crée une nouvelle dépense"""
        with storage_errors(self.db):
            self.db.add(expense)
            self.db.commit()
            self.db.refresh(expense)
        return expense

    def get_by_id(self, expense_id: int) -> ExpenseModel:
        """Récupère une dépense par son ID"""
        with storage_errors(self.db):
            expense = self.db.get(ExpenseModel, expense_id)
        if expense is None:
            raise NotFoundError(f"Dépense {expense_id} non trouvée")
        return expense

    def get_all(self, expense_filter: ExpenseFilter = None) -> List[ExpenseModel]:
        """
        Récupère les dépenses, filtrées par catégorie, mode de paiement et
        intervalle de dates. Les plus récentes d'abord.
        """
        expense_filter = expense_filter or ExpenseFilter()
        query = self.db.query(ExpenseModel)

        if expense_filter.category_id is not None:
            query = query.filter(ExpenseModel.category_id == expense_filter.category_id)
        if expense_filter.payment_mode is not None:
            query = query.filter(ExpenseModel.payment_mode == expense_filter.payment_mode.value)
        if expense_filter.start_date is not None:
            query = query.filter(ExpenseModel.expense_date >= expense_filter.start_date)
        if expense_filter.end_date is not None:
            query = query.filter(ExpenseModel.expense_date <= expense_filter.end_date)

        query = query.order_by(
            ExpenseModel.expense_date.desc(),
            ExpenseModel.created_at.desc(),
            ExpenseModel.id.desc(),
        )
        with storage_errors(self.db):
            return query.all()

    def update(self, expense: ExpenseModel) -> ExpenseModel:
        with storage_errors(self.db):
            self.db.commit()
            self.db.refresh(expense)
        return expense

    def delete(self, expense_id: int):
        """Supprime une dépense"""
        with storage_errors(self.db):
            count = self.db.query(ExpenseModel).filter(ExpenseModel.id == expense_id).delete()
            if not count:
                raise NotFoundError(f"Dépense {expense_id} non trouvée")
            self.db.commit()

    def get_total_by_month(self, month: int, year: int) -> Decimal:
        """Somme des montants des dépenses d'un mois donné (0 si aucune)"""
        with storage_errors(self.db):
            total = self.db.query(
                func.coalesce(func.sum(ExpenseModel.amount), 0)
            ).filter(
                extract('month', ExpenseModel.expense_date) == month,
                extract('year', ExpenseModel.expense_date) == year,
            ).scalar()
        # SQLite somme des REAL: on revient au centime
        return round_to_cents(Decimal(str(total or 0)))


class BudgetRepository:
    def __init__(self, db: Session):
        self.db = db

    def _find_by_month(self, month: int, year: int):
        return self.db.query(BudgetModel).filter(
            BudgetModel.month == month,
            BudgetModel.year == year
        ).first()

    def create(self, budget: BudgetModel) -> BudgetModel:
        """Crée un budget; échoue avec DuplicateBudgetError si la période existe déjà"""
        with storage_errors(self.db, conflict_error=DuplicateBudgetError):
            self.db.add(budget)
            self.db.commit()
            self.db.refresh(budget)
        return budget

    def get_by_id(self, budget_id: int) -> BudgetModel:
        with storage_errors(self.db):
            budget = self.db.get(BudgetModel, budget_id)
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} non trouvé")
        return budget

    def get_all(self) -> List[BudgetModel]:
        """Récupère tous les budgets, du plus récent au plus ancien"""
        with storage_errors(self.db):
            return self.db.query(BudgetModel).order_by(
                BudgetModel.year.desc(), BudgetModel.month.desc()
            ).all()

    def get_by_month(self, month: int, year: int) -> BudgetModel:
        """Récupère le budget d'une période"""
        with storage_errors(self.db):
            budget = self._find_by_month(month, year)
        if budget is None:
            raise NotFoundError(f"Aucun budget pour {month:02d}/{year}")
        return budget

    def update(self, budget: BudgetModel) -> BudgetModel:
        with storage_errors(self.db):
            budget.updated_at = datetime.now()
            self.db.commit()
            self.db.refresh(budget)
        return budget

    def delete(self, budget_id: int):
        with storage_errors(self.db):
            count = self.db.query(BudgetModel).filter(BudgetModel.id == budget_id).delete()
            if not count:
                raise NotFoundError(f"Budget {budget_id} non trouvé")
            self.db.commit()

    def upsert(self, month: int, year: int, budget_amount: Decimal) -> BudgetModel:
        """
        Crée ou met à jour le budget d'une période.
        Si un autre appel crée le budget de la même période entre la lecture et
        l'insertion, la contrainte unique (month, year) rejette notre insertion
        et on met à jour la ligne existante à la place.
        """
        with storage_errors(self.db, conflict_error=DuplicateBudgetError):
            budget = self._find_by_month(month, year)
            if budget is None:
                budget = BudgetModel(month=month, year=year, budget_amount=budget_amount)
                self.db.add(budget)
                try:
                    self.db.commit()
                    self.db.refresh(budget)
                    return budget
                except IntegrityError:
                    self.db.rollback()
                    logger.warning(f"Budget {month:02d}/{year} créé en parallèle, mise à jour à la place")
                    budget = self._find_by_month(month, year)
                    if budget is None:
                        raise

            budget.budget_amount = budget_amount
            budget.updated_at = datetime.now()
            self.db.commit()
            self.db.refresh(budget)
            return budget
