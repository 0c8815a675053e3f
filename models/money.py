from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import AfterValidator, PlainSerializer

CENT = Decimal("0.01")


def round_to_cents(value: Decimal) -> Decimal:
    # Arrondi au centime avant stockage: montants stockés, listés et sommés identiques
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# Montant décimal côté Python, nombre JSON côté client
Money = Annotated[
    Decimal,
    AfterValidator(round_to_cents),
    PlainSerializer(float, return_type=float, when_used="json"),
]
