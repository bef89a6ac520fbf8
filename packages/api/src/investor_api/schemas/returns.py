# This project was developed with assistance from AI tools.
"""Return/payment figures derived from an investment."""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

PENDING_ACTIVATION = "Pending Activation"


class ReturnOverview(BaseModel):
    """Accrued figures for one investment as of a given day."""

    months_elapsed: int
    monthly_return: Decimal
    total_returns: Decimal
    current_value: Decimal
    next_payment_date: date | Literal["Pending Activation"]
    next_payment_amount: Decimal
