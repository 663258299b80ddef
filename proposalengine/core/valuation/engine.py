"""Present-value computation for a debt.

Responsibilities:
  - Apply fee, interest, other charges and correction to the original value in a fixed order.
  - Clamp negative totals to zero and report NEGATIVE_VALUATION.

Inputs/Outputs:
  - Inputs: original value and charges (or a whole Debt).
  - Outputs: ValuationResult with integer present value, raw total and notices.

Invariants:
  - Pure and idempotent; no clock, no I/O.
  - Fee, interest and other charges are based on the untouched original value.
  - Correction is applied last and is based on the running total.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import TYPE_CHECKING, Iterable, Optional

from ..domain.enums import ChargeMode, Notice

if TYPE_CHECKING:
    from ..domain.models import Charge, Debt

_HUNDRED = Decimal(100)
_UNIT = Decimal(1)


@dataclass(frozen=True)
class ValuationResult:
    present_value: int
    raw_total: Decimal
    notices: tuple[Notice, ...] = ()

    @property
    def clamped(self) -> bool:
        return Notice.NEGATIVE_VALUATION in self.notices


def _precision_for(operands: Iterable[int | Decimal]) -> int:
    # Wide enough that sums and percentage products of the operands stay exact.
    width = 0
    for operand in operands:
        _, digits, exponent = Decimal(operand).as_tuple()
        width += len(digits) + abs(int(exponent))
    return 28 + 2 * width


def resolve_charge(charge: Charge, base: int | Decimal) -> Decimal:
    value = Decimal(charge.value)
    if charge.mode == ChargeMode.FIXED:
        return value
    return Decimal(base) * value / _HUNDRED


def compute(
    original_value: int,
    fee: Charge,
    interest: Charge,
    other_charges: Iterable[Charge] = (),
    correction: Optional[Charge] = None,
) -> ValuationResult:
    """Correction may be a plain Charge; a Correction with status no-correct is skipped."""
    other_charges = tuple(other_charges)
    operands = [original_value, fee.value, interest.value]
    operands.extend(charge.value for charge in other_charges)
    if correction is not None:
        operands.append(correction.value)

    with localcontext() as ctx:
        ctx.prec = _precision_for(operands)
        total = Decimal(original_value)
        total += resolve_charge(fee, original_value)
        total += resolve_charge(interest, original_value)
        for charge in other_charges:
            total += resolve_charge(charge, original_value)
        if correction is not None and getattr(correction, "applies", True):
            total += resolve_charge(correction, total)

        if total < 0:
            return ValuationResult(
                present_value=0,
                raw_total=total,
                notices=(Notice.NEGATIVE_VALUATION,),
            )
        return ValuationResult(
            present_value=int(total.quantize(_UNIT, rounding=ROUND_HALF_UP)),
            raw_total=total,
        )


def value_debt(debt: Debt) -> ValuationResult:
    return compute(
        debt.original_value,
        debt.fee,
        debt.interest,
        debt.other_charges,
        debt.correction,
    )
