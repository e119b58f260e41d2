# proposal_builder/sanitize.py
"""Normalization of untrusted proposal documents.

Everything that enters the model from outside (seed data, JSON imports,
browser edits) passes through ``normalize_proposal`` or ``normalize_scope``.
Both are total: any input, including ``None``, lists and primitives, yields a
fully populated model. Existing ids are kept; missing ones come from the
``new_id`` callable so callers (and tests) can inject their own generator.
"""

from __future__ import annotations

import math
import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping

from proposal_builder.models import (
    DEFAULT_DISCLAIMERS,
    DEFAULT_TRADE,
    TRADE_PRESETS,
    AddOrDeduct,
    Alternate,
    ClientInfo,
    CommercialTerms,
    CompanyInfo,
    LineItem,
    ProjectInfo,
    Proposal,
    Scope,
)

IdFactory = Callable[[], str]
Clock = Callable[[], str]

_MODEL_TYPES = (
    Proposal, Scope, LineItem, Alternate,
    CompanyInfo, ClientInfo, ProjectInfo, CommercialTerms,
)
_LINE_BREAK = re.compile(r"\r?\n")
_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off", ""}


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------- coercion helpers ----------

def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, _MODEL_TYPES):
        return raw.to_dict()
    if isinstance(raw, Mapping):
        return raw
    return {}


def _to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _or_fresh(value: Any, new_id: IdFactory) -> str:
    return _to_str(value) if value else new_id()


def to_finite(value: Any, default: float) -> float:
    """Coerce ``value`` to a finite float, falling back to ``default``.

    Blank strings, ``None`` and ``False`` read as 0 and ``True`` as 1, the way
    a cleared number field does. Unparseable text, NaN and infinities resolve
    to ``default``.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    if not isinstance(value, (int, float, Decimal, str)):
        return default
    try:
        num = float(value)
    except (ValueError, OverflowError):
        return default
    return num if math.isfinite(num) else default


def _number(raw: Mapping[str, Any], key: str, default: float) -> float:
    """A missing key takes ``default``; a present one goes through ``to_finite``."""
    return to_finite(raw[key], default) if key in raw else default


def _to_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return default
    if isinstance(value, (int, float)) and math.isfinite(value):
        return bool(value)
    return default


def to_str_list(value: Any) -> List[str]:
    """Lists keep their string entries; a single string is split per line."""
    if isinstance(value, (list, tuple)):
        return [x for x in value if isinstance(x, str)]
    if isinstance(value, str):
        return [s.strip() for s in _LINE_BREAK.split(value) if s.strip()]
    return []


def _to_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _merged(defaults: Dict[str, Any], raw: Any) -> Dict[str, Any]:
    merged = dict(defaults)
    merged.update(_as_mapping(raw))
    return merged


# ---------- line items & alternates ----------

def normalize_line_item(raw: Any, new_id: IdFactory = generate_id) -> LineItem:
    x = _as_mapping(raw)
    return LineItem(
        id=_or_fresh(x.get("id"), new_id),
        description=_to_str(x.get("description")),
        unit=_to_str(x.get("unit"), "LS"),
        qty=_number(x, "qty", 1.0),
        unit_rate=_number(x, "unitRate", 0.0),
    )


def normalize_alternate(raw: Any, new_id: IdFactory = generate_id) -> Alternate:
    a = _as_mapping(raw)
    # anything other than an exact DEDUCT counts as an addition
    kind = AddOrDeduct.DEDUCT if a.get("addOrDeduct") == "DEDUCT" else AddOrDeduct.ADD
    return Alternate(
        id=_or_fresh(a.get("id"), new_id),
        label=_to_str(a.get("label"), "Alt #"),
        description=_to_str(a.get("description")),
        add_or_deduct=kind,
        amount=_number(a, "amount", 0.0),
    )


def _line_list(value: Any, new_id: IdFactory) -> List[LineItem]:
    if not isinstance(value, (list, tuple)):
        return []
    return [normalize_line_item(x, new_id) for x in value]


def _alt_list(value: Any, new_id: IdFactory) -> List[Alternate]:
    if not isinstance(value, (list, tuple)):
        return []
    return [normalize_alternate(a, new_id) for a in value]


# ---------- scope ----------

def _resolve_trade(value: Any) -> str:
    if isinstance(value, str) and value in TRADE_PRESETS:
        return value
    return DEFAULT_TRADE


def normalize_scope(raw: Any, new_id: IdFactory = generate_id) -> Scope:
    s = _as_mapping(raw)
    trade = _resolve_trade(s.get("trade"))
    return Scope(
        id=_or_fresh(s.get("id"), new_id),
        trade=trade,
        title=_to_str(s.get("title"), f"{trade} Scope"),
        system=_to_str(s.get("system")),
        finish=_to_str(s.get("finish")),
        glass_spec=_to_str(s.get("glassSpec")),
        performance=_to_dict(s.get("performance")),
        structural=_to_dict(s.get("structural")),
        inclusions=to_str_list(s.get("inclusions")),
        exclusions=to_str_list(s.get("exclusions")),
        notes=_to_str(s.get("notes")),
        schedule=_to_dict(s.get("schedule")),
        pricing_items=_line_list(s.get("pricingItems"), new_id),
        services=_line_list(s.get("services"), new_id),
        general_conditions=_line_list(s.get("generalConditions"), new_id),
        alternates=_alt_list(s.get("alternates"), new_id),
    )


# ---------- proposal ----------

def normalize_company(raw: Any) -> CompanyInfo:
    d = CompanyInfo()
    c = _merged(d.to_dict(), raw)
    return CompanyInfo(
        name=_to_str(c.get("name"), d.name),
        address=_to_str(c.get("address")),
        phone=_to_str(c.get("phone")),
        email=_to_str(c.get("email")),
        website=_to_str(c.get("website")),
        contact=_to_str(c.get("contact")),
        logo_data_url=_to_str(c.get("logoDataUrl")),
    )


def normalize_client(raw: Any) -> ClientInfo:
    c = _merged(ClientInfo().to_dict(), raw)
    return ClientInfo(
        name=_to_str(c.get("name")),
        contact=_to_str(c.get("contact")),
        email=_to_str(c.get("email")),
        phone=_to_str(c.get("phone")),
        address=_to_str(c.get("address")),
    )


def normalize_project(raw: Any) -> ProjectInfo:
    p = _merged(ProjectInfo().to_dict(), raw)
    return ProjectInfo(
        name=_to_str(p.get("name")),
        number=_to_str(p.get("number")),
        location=_to_str(p.get("location")),
        bid_date=_to_str(p.get("bidDate")),
    )


def normalize_terms(raw: Any) -> CommercialTerms:
    d = CommercialTerms()
    t = _merged(d.to_dict(), raw)
    currency = _to_str(t.get("currency")).strip().upper() or d.currency
    return CommercialTerms(
        tax_rate_pct=_number(t, "taxRatePct", d.tax_rate_pct),
        overhead_pct=_number(t, "overheadPct", d.overhead_pct),
        profit_pct=_number(t, "profitPct", d.profit_pct),
        bond_pct=_number(t, "bondPct", d.bond_pct),
        currency=currency,
        show_unit_rates=_to_bool(t.get("showUnitRates"), d.show_unit_rates),
        show_breakdown=_to_bool(t.get("showBreakdown"), d.show_breakdown),
        include_bond=_to_bool(t.get("includeBond"), d.include_bond),
        payment_terms=_to_str(t.get("paymentTerms"), d.payment_terms),
        warranty=_to_str(t.get("warranty"), d.warranty),
    )


def normalize_proposal(
    raw: Any,
    new_id: IdFactory = generate_id,
    now: Clock = utcnow_iso,
) -> Proposal:
    p = _as_mapping(raw)
    scopes = p.get("scopes")
    if "disclaimers" in p:
        disclaimers = to_str_list(p.get("disclaimers"))
    else:
        disclaimers = list(DEFAULT_DISCLAIMERS)
    return Proposal(
        id=_or_fresh(p.get("id"), new_id),
        name=_to_str(p.get("name"), "Untitled Proposal"),
        version=_to_str(p.get("version"), "1.0"),
        company=normalize_company(p.get("company")),
        client=normalize_client(p.get("client")),
        project=normalize_project(p.get("project")),
        commercial_terms=normalize_terms(p.get("commercialTerms")),
        scopes=[normalize_scope(s, new_id) for s in scopes] if isinstance(scopes, (list, tuple)) else [],
        disclaimers=disclaimers,
        created_at=_or_fresh(p.get("createdAt"), now),
        updated_at=_or_fresh(p.get("updatedAt"), now),
    )
