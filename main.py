from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import uvicorn
import logging

from config import Settings
from database.database import create_db_engine, create_session_factory, get_db, init_db
from database.crud import BudgetRepository, CategoryRepository, ExpenseRepository
from models.budget import Budget, BudgetCreate, BudgetStatus
from models.category import Category, CategoryCreate, CategoryUpdate
from models.errors import ConflictError, InvalidInputError, NotFoundError
from models.expense import Expense, ExpenseCreate, ExpenseFilter, ExpenseUpdate, PaymentMode
from services.budget_service import BudgetService
from services.category_service import CategoryService
from services.expense_service import ExpenseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(CategoryRepository(db))


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:
    return ExpenseService(ExpenseRepository(db), CategoryRepository(db), BudgetRepository(db))


def get_budget_service(db: Session = Depends(get_db)) -> BudgetService:
    return BudgetService(BudgetRepository(db), ExpenseRepository(db))


# Category endpoints
@router.get("/categories", response_model=List[Category])
def get_categories(service: CategoryService = Depends(get_category_service)):
    """
    Récupère toutes les catégories
    """
    try:
        return service.get_categories()
    except Exception as e:
        logger.error(f"Erreur lors de la lecture des catégories: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/categories/{category_id}", response_model=Category)
def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    try:
        return service.get_category_by_id(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la lecture de la catégorie {category_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/categories", response_model=Category, status_code=201)
def create_category(category: CategoryCreate, service: CategoryService = Depends(get_category_service)):
    """
    Crée une catégorie (nom unique)
    """
    try:
        return service.create_category(category.name)
    except (InvalidInputError, ConflictError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la création de la catégorie: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/categories/{category_id}", response_model=Category)
def update_category(
    category_id: int,
    category: CategoryUpdate,
    service: CategoryService = Depends(get_category_service)
):
    """
    Renomme une catégorie
    """
    try:
        return service.update_category(category_id, category.name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidInputError, ConflictError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la mise à jour de la catégorie {category_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    """
    Supprime une catégorie et ses dépenses
    """
    try:
        service.delete_category(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la suppression de la catégorie {category_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=204)


# Expense endpoints
@router.get("/expenses", response_model=List[Expense], response_model_exclude_none=True)
def get_expenses(
    category_id: Optional[int] = None,
    payment_mode: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: ExpenseService = Depends(get_expense_service)
):
    """
    Récupère les dépenses, optionnellement filtrées.
    Un mode de paiement inconnu est ignoré.
    """
    expense_filter = ExpenseFilter(
        category_id=category_id,
        payment_mode=PaymentMode(payment_mode) if PaymentMode.is_valid(payment_mode) else None,
        start_date=start_date,
        end_date=end_date,
    )
    try:
        return service.get_expenses(expense_filter)
    except Exception as e:
        logger.error(f"Erreur lors de la lecture des dépenses: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/expenses/{expense_id}", response_model=Expense, response_model_exclude_none=True)
def get_expense(expense_id: int, service: ExpenseService = Depends(get_expense_service)):
    try:
        return service.get_expense_by_id(expense_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la lecture de la dépense {expense_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/expenses", response_model=Expense, status_code=201, response_model_exclude_none=True)
def create_expense(expense: ExpenseCreate, service: ExpenseService = Depends(get_expense_service)):
    """
    Crée une dépense. Le champ warning est renseigné si le budget du mois est dépassé.
    """
    try:
        return service.create_expense(expense)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la création de la dépense: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/expenses/{expense_id}", response_model=Expense, response_model_exclude_none=True)
def update_expense(
    expense_id: int,
    expense_update: ExpenseUpdate,
    service: ExpenseService = Depends(get_expense_service)
):
    """
    Met à jour une dépense (seuls les champs envoyés sont modifiés)
    """
    try:
        return service.update_expense(expense_id, expense_update)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la mise à jour de la dépense {expense_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/expenses/{expense_id}", status_code=204)
def delete_expense(expense_id: int, service: ExpenseService = Depends(get_expense_service)):
    try:
        service.delete_expense(expense_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la suppression de la dépense {expense_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=204)


# Budget endpoints
@router.get("/budgets", response_model=List[Budget])
def get_budgets(service: BudgetService = Depends(get_budget_service)):
    """
    Récupère tous les budgets, du plus récent au plus ancien
    """
    try:
        return service.get_budgets()
    except Exception as e:
        logger.error(f"Erreur lors de la lecture des budgets: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/budgets/{month}/{year}", response_model=BudgetStatus)
def get_budget_by_month(month: int, year: int, service: BudgetService = Depends(get_budget_service)):
    """
    Budget du mois avec le montant dépensé, le reste et le statut
    """
    try:
        return service.get_budget_by_month(month, year)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors du calcul du budget {month:02d}/{year}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/budgets", response_model=Budget, status_code=201)
def create_or_update_budget(budget: BudgetCreate, service: BudgetService = Depends(get_budget_service)):
    """
    Crée ou met à jour le budget d'un mois
    """
    try:
        return service.create_or_update_budget(budget.month, budget.year, budget.budget_amount)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de l'enregistrement du budget: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: int, service: BudgetService = Depends(get_budget_service)):
    try:
        service.delete_budget(budget_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la suppression du budget {budget_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=204)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Requête mal formée: 400 plutôt que le 422 par défaut de FastAPI
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Construit l'application: la base de données est créée ici et attachée à
    app.state, chaque requête ouvre sa propre session.
    """
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Expense Tracker API", version="1.0.0")

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Initialize database
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)

    @app.get("/")
    async def root():
        return {"message": "Expense Tracker API"}

    return app


if __name__ == "__main__":
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
