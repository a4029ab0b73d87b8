"""
Moisture-based grading of honey lots.

Two independent readings of the same moisture value exist:

* ``classify`` grades a lot for pricing and stock keys (EXPORT / INDUSTRIAL /
  DOMESTIC). INDUSTRIAL is reserved for an exact 22% reading.
* ``moisture_band`` is the coarse LOW / HIGH split used only to keep drums
  homogeneous. It deliberately ignores the 22% special case, so a 22% lot and
  a 21% lot share the HIGH band while carrying different classifications.
"""

import math
from decimal import Decimal, InvalidOperation
from numbers import Rational, Real

from honey_ledger.enums import Classification, MoistureBand
from honey_ledger.exceptions import InvalidInput

EXPORT_CEILING = 20
INDUSTRIAL_EXACT = 22


def validate_moisture(moisture_percent: object) -> Decimal:
    """Return the reading as a Decimal or raise InvalidInput."""
    if isinstance(moisture_percent, bool) or not isinstance(moisture_percent, (Real, Decimal)):
        raise InvalidInput(
            "Moisture must be a number",
            moisture_percent=repr(moisture_percent),
        )
    if isinstance(moisture_percent, Decimal):
        value = moisture_percent
        finite = value.is_finite()
    elif isinstance(moisture_percent, Rational):
        value = Decimal(moisture_percent.numerator) / Decimal(moisture_percent.denominator)
        finite = True
    else:
        finite = math.isfinite(moisture_percent)
        try:
            value = Decimal(str(moisture_percent)) if finite else Decimal(0)
        except InvalidOperation as e:
            raise InvalidInput("Moisture must be a number", moisture_percent=repr(moisture_percent)) from e
    if not finite or not (0 <= value <= 100):
        raise InvalidInput(
            "Moisture must be a finite percentage between 0 and 100",
            moisture_percent=str(moisture_percent),
        )
    return value


def classify(moisture_percent: object) -> Classification:
    value = validate_moisture(moisture_percent)
    if value <= EXPORT_CEILING:
        return Classification.EXPORT
    if value == INDUSTRIAL_EXACT:
        return Classification.INDUSTRIAL
    return Classification.DOMESTIC


def moisture_band(moisture_percent: object) -> MoistureBand:
    value = validate_moisture(moisture_percent)
    return MoistureBand.LOW if value <= EXPORT_CEILING else MoistureBand.HIGH
