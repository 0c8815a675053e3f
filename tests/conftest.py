from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database.crud import BudgetRepository, CategoryRepository, ExpenseRepository
from database.database import create_db_engine, create_session_factory, init_db
from database.models import CategoryModel, ExpenseModel
from main import create_app
from services.budget_service import BudgetService
from services.category_service import CategoryService
from services.expense_service import ExpenseService


@pytest.fixture
def db():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def category_repo(db):
    return CategoryRepository(db)


@pytest.fixture
def expense_repo(db):
    return ExpenseRepository(db)


@pytest.fixture
def budget_repo(db):
    return BudgetRepository(db)


@pytest.fixture
def category_service(category_repo):
    return CategoryService(category_repo)


@pytest.fixture
def budget_service(budget_repo, expense_repo):
    return BudgetService(budget_repo, expense_repo)


@pytest.fixture
def expense_service(expense_repo, category_repo, budget_repo):
    return ExpenseService(expense_repo, category_repo, budget_repo)


@pytest.fixture
def groceries(category_repo):
    return category_repo.create(CategoryModel(name="Courses"))


@pytest.fixture
def make_expense(expense_repo, groceries):
    """Enregistre directement une dépense, sans passer par le service"""
    def _make(amount, expense_date, payment_mode="UPI", category_id=None, description=""):
        return expense_repo.create(ExpenseModel(
            category_id=category_id or groceries.id,
            amount=Decimal(str(amount)),
            description=description,
            payment_mode=payment_mode,
            expense_date=expense_date,
        ))
    return _make


@pytest.fixture
def client():
    app = create_app(Settings(database_url="sqlite://", cors_origins=["*"]))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def today():
    return date.today()
