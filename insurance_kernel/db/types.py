"""
Annotated column aliases shared by the models.

Every amount in the back office (contract premium, claim estimate and
settlement, indemnification, premium instalment) is declared as Money so
that storage precision is identical everywhere.
"""

from decimal import Decimal
from typing import Annotated

from sqlalchemy import BigInteger, Numeric, String

# Monetary amount, two decimal places
Money = Annotated[Decimal, Numeric(12, 2)]

# Business reference numbers (contract, claim, folder numbers)
ReferenceNumber = Annotated[str, String(50)]

# Monotonic sequence number for ordering
Sequence = Annotated[int, BigInteger]
