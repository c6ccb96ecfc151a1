"""
Settlement Engine Module

Pure computation core for group expenses. Turns a list of expenses into net
balances and net balances into a short list of pairwise payments.

The engine works in two stages:
1. Balance aggregation: credit each payer with the full amount and debit every
   participant with an equal share (amount / number of participants)
2. Settlement matching: greedy largest-credit to largest-debt sweep with
   deterministic tie-breaking by identity

Balances within +/- SETTLEMENT_EPSILON of zero are treated as settled. The band
absorbs the residue left by equal-share division (100 / 3 never sums back to
exactly 100).

Time Complexity: O(n log n) for sorting + O(n) for matching = O(n log n)
Space Complexity: O(n) for balances and settlement results

Example Usage:
    from tripsplit.utils.settlement_engine import compute_balances, compute_settlements

    balances = compute_balances(expenses, ["A", "B", "C"])
    settlements = compute_settlements(balances)

Nothing in this module performs I/O or mutates its arguments, so it is safe to
call repeatedly and from several threads on different inputs.
"""

import logging
from decimal import Decimal
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Tuple

from tripsplit.schemas.expense_schema import Expense
from tripsplit.schemas.settlement_schema import Settlement
from tripsplit.utils.money import fraction_to_decimal, quantize

logger = logging.getLogger(__name__)

SETTLEMENT_EPSILON = Decimal("0.01")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert ints, floats and strings to Decimal through their string form."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_decimal(value: Decimal, precision: Decimal = CENT) -> Decimal:
    """
    Round a Decimal value to the specified precision.

    Uses the context rounding mode (ROUND_HALF_EVEN), so exact halves go to the
    even neighbour. Values too large for the context precision are still rounded
    rather than raising InvalidOperation.

    Example:
        >>> round_decimal(Decimal("43.333333"))
        Decimal('43.33')
    """
    return quantize(value, precision)


def validate_balance_sum(balances: Dict[str, Decimal], tolerance: Decimal = SETTLEMENT_EPSILON) -> None:
    """
    Validate that the sum of all balances is approximately zero.

    Balances produced by compute_balances always pass. This check is meant for
    balances that arrive from outside the engine.

    Raises:
        ValueError: If the sum of balances exceeds the tolerance
    """
    total = sum(balances.values(), Decimal("0"))
    if abs(total) > tolerance:
        raise ValueError(
            f"Balances not zero-sum: total={total}, tolerance={tolerance}. "
            f"This indicates unbalanced expense data."
        )


def compute_balances(expenses: Iterable[Expense], members: Iterable[str]) -> Dict[str, Decimal]:
    """
    Calculate the net balance of every member from a list of expenses.

    Net balance = total_paid - total_share
    - Positive balance: the group owes this member money (creditor)
    - Negative balance: this member owes the group money (debtor)

    Every member starts at zero so that members without expenses still show up.
    Identities that appear in expenses but not in ``members`` are added as they
    are met.

    Shares are summed as exact fractions and converted to Decimal once per
    member, so the result does not depend on the order of the expenses.

    Args:
        expenses: Validated Expense records (amount > 0, non-empty participants)
        members: Identity strings of the group members

    Returns:
        Dictionary mapping identity -> net balance (Decimal, unrounded)

    Example:
        >>> compute_balances([Expense(payer="A", amount=90, participants=["A", "B", "C"])],
        ...                  ["A", "B", "C"])
        {'A': Decimal('60'), 'B': Decimal('-30'), 'C': Decimal('-30')}
    """
    totals: Dict[str, Fraction] = {member: Fraction(0) for member in members}

    for expense in expenses:
        amount = Fraction(to_decimal(expense.amount))
        share = amount / len(expense.participants)

        totals[expense.payer] = totals.get(expense.payer, Fraction(0)) + amount
        for participant in expense.participants:
            totals[participant] = totals.get(participant, Fraction(0)) - share

    return {user_id: fraction_to_decimal(total) for user_id, total in totals.items()}


def _partition(
    balances: Dict[str, Decimal],
    tolerance: Decimal
) -> Tuple[List[List], List[List]]:
    """Split balances into sorted [identity, amount] creditor and debtor lists."""
    creditors = [
        [user_id, to_decimal(balance)]
        for user_id, balance in balances.items()
        if to_decimal(balance) > tolerance
    ]
    debtors = [
        [user_id, -to_decimal(balance)]  # Store as positive for easier matching
        for user_id, balance in balances.items()
        if to_decimal(balance) < -tolerance
    ]

    # Largest first; amounts equal to the cent tie and fall back to identity
    creditors.sort(key=lambda entry: (-round_decimal(entry[1]), entry[0]))
    debtors.sort(key=lambda entry: (-round_decimal(entry[1]), entry[0]))
    return creditors, debtors


def _match(
    balances: Dict[str, Decimal],
    tolerance: Decimal,
    trace: Optional[List[str]] = None
) -> List[Settlement]:
    """
    Greedy largest-first matching shared by both public entry points.

    When ``trace`` is a list, a human-readable line is appended for every step.
    """
    creditors, debtors = _partition(balances, tolerance)

    if trace is not None:
        trace.append(f"Creditors (to receive): {[(c[0], str(c[1])) for c in creditors]}")
        trace.append(f"Debtors (to pay): {[(d[0], str(d[1])) for d in debtors]}")

    if not creditors or not debtors:
        if creditors or debtors:
            # Only possible when the balances did not come from compute_balances
            logger.debug(f"One-sided balances, nothing to match: {len(creditors)} creditors, {len(debtors)} debtors")
        if trace is not None:
            trace.append("No creditors or no debtors. No settlements needed.")
        return []

    settlements: List[Settlement] = []
    i, j = 0, 0
    while i < len(creditors) and j < len(debtors):
        creditor_id, credit_amount = creditors[i]
        debtor_id, debt_amount = debtors[j]

        settle_amount = min(credit_amount, debt_amount)
        settlements.append(Settlement(from_user=debtor_id, to_user=creditor_id, amount=settle_amount))

        creditors[i][1] = credit_amount - settle_amount
        debtors[j][1] = debt_amount - settle_amount

        if trace is not None:
            trace.append(
                f"Step {len(settlements)}: {debtor_id} pays {creditor_id} "
                f"{round_decimal(settle_amount)} "
                f"(remaining {creditor_id}={round_decimal(creditors[i][1])}, "
                f"{debtor_id}={round_decimal(debtors[j][1])})"
            )

        if creditors[i][1] < tolerance or creditors[i][1] <= 0:
            if trace is not None:
                trace.append(f"  {creditor_id} fully settled, advancing creditor pointer")
            i += 1
        if debtors[j][1] < tolerance or debtors[j][1] <= 0:
            if trace is not None:
                trace.append(f"  {debtor_id} fully settled, advancing debtor pointer")
            j += 1

    logger.debug(f"Matched {len(settlements)} settlements")
    return settlements


def compute_settlements(
    balances: Dict[str, Decimal],
    tolerance: Decimal = SETTLEMENT_EPSILON
) -> List[Settlement]:
    """
    Produce an ordered list of payments that nets all balances to zero.

    Uses a greedy algorithm that:
    1. Separates members into creditors (balance > tolerance) and debtors
       (balance < -tolerance); everything in between counts as settled
    2. Sorts both lists by amount, largest first, ties by ascending identity
    3. Repeatedly matches the current creditor with the current debtor for the
       smaller of the two amounts, advancing whichever side drops below tolerance

    At most (creditors + debtors - 1) settlements are emitted and none of them
    has the same identity on both sides. Never raises: empty, all-zero or
    one-sided input simply yields an empty list.

    Args:
        balances: Dictionary mapping identity -> net balance
        tolerance: Width of the zero band (default: SETTLEMENT_EPSILON)

    Returns:
        Settlements in emission order, with ``id`` unset and ``is_settled`` False

    Example:
        >>> compute_settlements({"A": Decimal("80"), "B": Decimal("-10"), "C": Decimal("-70")})
        [Settlement(from_user='C', to_user='A', amount=Decimal('70'), ...),
         Settlement(from_user='B', to_user='A', amount=Decimal('10'), ...)]
    """
    return _match(balances, tolerance)


def compute_settlements_detailed(
    balances: Dict[str, Decimal],
    tolerance: Decimal = SETTLEMENT_EPSILON
) -> Tuple[List[Settlement], List[str]]:
    """
    Same algorithm as compute_settlements(), but also returns a step log.

    Useful for debugging and for showing members why they were asked to pay
    a particular person.

    Returns:
        Tuple of (settlements_list, detailed_logs_list)
    """
    logs = [
        "Settlement matching - detailed workflow",
        f"Initial balances: {[(user_id, str(round_decimal(to_decimal(b)))) for user_id, b in sorted(balances.items())]}",
        f"Tolerance: {tolerance}",
    ]
    settlements = _match(balances, tolerance, trace=logs)
    logs.append(f"Total settlements: {len(settlements)}")
    return settlements, logs
