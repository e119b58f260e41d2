# proposal_builder/totals.py
"""Commercial totals for a proposal.

Markups are layered in a fixed order: overhead on direct cost, profit on
direct + overhead, bond (only when enabled) on direct + overhead + profit,
tax on all of that. Net alternates are added last, untaxed and unmarked-up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, List

from babel.numbers import (
    UnknownCurrencyError,
    format_currency as babel_format_currency,
    get_currency_precision,
    validate_currency,
)

from proposal_builder.models import LineItem, Proposal, Scope
from proposal_builder.sanitize import to_finite

CURRENCY_LOCALE = "en_US"
# enough digits for any finite float at two decimals
DECIMAL_PRECISION = 340


def _round_half_up(value: float, digits: int) -> Decimal:
    return Decimal(value).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def format_currency(amount: float, currency_code: str = "USD") -> str:
    """Render ``amount`` as ``sign + formatted(|amount|)`` in en-US style.

    Any ISO 4217 code is accepted, case-insensitively. Unrecognized codes
    fall back to a plain ``$0.00`` rendering. Halves round away from zero.
    """
    value = to_finite(amount, 0.0)
    sign = "-" if value < 0 else ""
    v = abs(value)
    try:
        code = currency_code.strip().upper()
        validate_currency(code)
    except (AttributeError, UnknownCurrencyError):
        code = None
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        if code is None:
            return sign + f"${_round_half_up(v, 2)}"
        rounded = _round_half_up(v, get_currency_precision(code))
        return sign + babel_format_currency(rounded, code, locale=CURRENCY_LOCALE)


def line_sum(item: LineItem) -> float:
    return (item.qty or 0.0) * (item.unit_rate or 0.0)


def _sum_lines(items: Iterable[LineItem]) -> float:
    return sum((line_sum(it) for it in items), 0.0)


@dataclass(frozen=True)
class ScopeTotals:
    id: str
    direct_pricing: float
    services: float
    gen_conds: float
    direct: float
    alternates: float
    subtotal: float

    def to_dict(self) -> dict:
        return {
            "id":            self.id,
            "directPricing": self.direct_pricing,
            "services":      self.services,
            "genConds":      self.gen_conds,
            "direct":        self.direct,
            "alternates":    self.alternates,
            "subtotal":      self.subtotal,
        }


@dataclass(frozen=True)
class ProposalTotals:
    direct_total: float
    alternates_total: float
    overhead: float
    profit: float
    bond: float
    taxable: float
    tax: float
    grand_total: float
    by_scope: List[ScopeTotals] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "byScope":         [t.to_dict() for t in self.by_scope],
            "directTotal":     self.direct_total,
            "alternatesTotal": self.alternates_total,
            "overhead":        self.overhead,
            "profit":          self.profit,
            "bond":            self.bond,
            "taxable":         self.taxable,
            "tax":             self.tax,
            "grandTotal":      self.grand_total,
        }


def calc_scope_totals(scope: Scope) -> ScopeTotals:
    direct_pricing = _sum_lines(scope.pricing_items)
    services = _sum_lines(scope.services)
    gen_conds = _sum_lines(scope.general_conditions)
    direct = direct_pricing + services + gen_conds
    # no floor: deducts may outweigh adds
    alternates = sum((a.signed_amount for a in scope.alternates), 0.0)
    return ScopeTotals(
        id=scope.id,
        direct_pricing=direct_pricing,
        services=services,
        gen_conds=gen_conds,
        direct=direct,
        alternates=alternates,
        subtotal=direct + alternates,
    )


def compute_proposal_totals(proposal: Proposal) -> ProposalTotals:
    terms = proposal.commercial_terms
    by_scope = [calc_scope_totals(s) for s in proposal.scopes]
    direct_total = sum((t.direct for t in by_scope), 0.0)
    alternates_total = sum((t.alternates for t in by_scope), 0.0)

    overhead = (terms.overhead_pct / 100) * direct_total
    profit = (terms.profit_pct / 100) * (direct_total + overhead)
    bond = 0.0
    if terms.include_bond:
        bond = (terms.bond_pct / 100) * (direct_total + overhead + profit)
    taxable = direct_total + overhead + profit + bond
    tax = (terms.tax_rate_pct / 100) * taxable
    grand_total = taxable + tax + alternates_total

    return ProposalTotals(
        by_scope=by_scope,
        direct_total=direct_total,
        alternates_total=alternates_total,
        overhead=overhead,
        profit=profit,
        bond=bond,
        taxable=taxable,
        tax=tax,
        grand_total=grand_total,
    )
