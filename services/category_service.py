from typing import List
import logging

from database.crud import CategoryRepository
from database.models import CategoryModel
from models.errors import InvalidInputError

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, category_repo: CategoryRepository):
        self.category_repo = category_repo

    @staticmethod
    def _clean_name(name: str) -> str:
        if not name or len(name.strip()) == 0:
            raise InvalidInputError("Le nom de la catégorie ne peut pas être vide")
        return name.strip()

    def create_category(self, name: str) -> CategoryModel:
        category = self.category_repo.create(CategoryModel(name=self._clean_name(name)))
        logger.info(f"Catégorie créée: {category.name} (id={category.id})")
        return category

    def get_categories(self) -> List[CategoryModel]:
        return self.category_repo.get_all()

    def get_category_by_id(self, category_id: int) -> CategoryModel:
        return self.category_repo.get_by_id(category_id)

    def update_category(self, category_id: int, name: str) -> CategoryModel:
        """Renomme une catégorie"""
        name = self._clean_name(name)
        category = self.category_repo.get_by_id(category_id)
        category.name = name
        category = self.category_repo.update(category)
        logger.info(f"Catégorie {category_id} renommée en {name}")
        return category

    def delete_category(self, category_id: int):
        """Supprime une catégorie et, en cascade, ses dépenses"""
        self.category_repo.get_by_id(category_id)
        self.category_repo.delete(category_id)
        logger.info(f"Catégorie {category_id} supprimée")
