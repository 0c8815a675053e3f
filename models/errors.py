"""
Erreurs métier et erreurs de stockage de l'API
"""


class ExpenseTrackerError(Exception):
    """Erreur de base de l'application"""
    default_message = "Erreur inattendue"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class NotFoundError(ExpenseTrackerError):
    default_message = "Ressource non trouvée"


class InvalidInputError(ExpenseTrackerError):
    default_message = "Données invalides"


class InvalidPaymentModeError(InvalidInputError):
    default_message = "Mode de paiement invalide (UPI ou Cash)"


class InvalidCategoryError(InvalidInputError):
    default_message = "Catégorie invalide"


class StorageError(ExpenseTrackerError):
    """Échec de la couche de persistance (connexion, contrainte, ...)"""
    default_message = "Erreur de stockage"


class ConflictError(StorageError):
    default_message = "Conflit avec une donnée existante"


class DuplicateBudgetError(ConflictError):
    default_message = "Un budget existe déjà pour cette période"
