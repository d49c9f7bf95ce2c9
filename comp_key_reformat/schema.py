"""Canonical column layout of the comp-key tracking sheet."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from .headers import header_key

CANONICAL_COLUMNS: tuple[str, ...] = (
    "ST",
    "Account **CARRIER**",
    "Carrier Comp Type OTG PDNG OTG ADD OTG - Zayo = zMAP NEW = On comp statement PDNG in Monday",
    "Carrier Relationship",
    "Service Provider",
    "Status / Type",
    'Opportunity "Promo Year" **KEEP ORIGINAL OPP**',
    "Promo Year Revenue / OG SF Opp zMAP = anything new to OTG **KEEP ORIGINAL OPP**",
    "Install Date OR OTG payable Date",
    "OTG Comp Billing item",
    "Cust. ACTIVE BAN",
    "Historic BAN - non-ZNS",
    "Item Desc. from current Carrier Statement",
    "PAYING Monthly Comp % to OTG from current Carrier Statement",
    "Quantity",
    "Price",
    "Monthly Unit Price Quantity x Price QRC/SEMI//YRC x 4, 6, or 12",
    "EXPECTED/Mo. OTG Comp % - column R Comp Key",
    "Monthly Comp to OTG per EXPECTED Comp %",
    "One-Time Unit Price / SPIFF",
    "One-Time Comp % to OTG",
    "One-Time Comp Expected to OTG",
    "Cust. Billed Type",
    "COMP 1",
    "COMP 2",
    "COMP 3",
    "COMP 4",
    "before 07/2025 COMP 1",
    "before 07/2025 COMP 2",
    "before 07/2025 COMP 3",
    "before 07/2025 COMP 4",
    "NOTES RED Highlight = Differs from before comp key",
    "MISSING OTG COMP",
    "SVC Change Date",
    "Prev. Unit Price",
    "OTG Compensable Product NAME",
    "MISSING MONDAY",
    "Sig Date",
    "Term",
    "Location Name",
    "Service Address",
    "Order #",
    "Circuit ID",
    "Unique Order Details SOC / SC",
    "TED",
    "Renewal Details",
    "Monday Product Comments - EXCLUDE SPLIT NOTES/VALUES",
    "Monday Item ID",
    "COMP CALC Mo. OTG RCVD Funds>>",
    "OTG PD since July Seller Statemen June Deposit",
    "July Seller Statement - June Deposit",
    "Aug Seller Stmt - July Deposit",
    "Sept Seller Stmt - Aug Deposit",
    "Oct Seller Stmt - Sept Deposit",
    "Nov Seller Stmt - Oct Deposit",
    "Dec Seller Stmt - Nov Deposit",
    "Jan Seller Stmt - Dec Deposit",
    "Feb Seller Stmt - Jan Deposit",
    "Mar Seller Stmt - Feb Deposit",
    "Apr Seller Stmt - Mar Deposit",
    "May Seller Stmt - Apr Deposit",
    "June Seller Stmt - May Deposit",
)


def validate_schema(canonical: Sequence[str]) -> tuple[str, ...]:
    """
    Check a canonical column list and return it as a tuple.

    Raises ValueError for an empty list or for headers that become identical
    once normalized, since those could never be told apart when matching.
    """
    columns = tuple(str(name) for name in canonical)
    if not columns:
        raise ValueError("Canonical schema must list at least one column")
    counts = Counter(header_key(name) for name in columns)
    clashes = sorted(key for key, count in counts.items() if count > 1)
    if clashes:
        raise ValueError(f"Canonical headers collide after normalization: {', '.join(clashes)}")
    return columns
