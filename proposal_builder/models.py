# proposal_builder/models.py
"""Document model for a bid proposal.

Attributes are snake_case; ``to_dict`` produces the camelCase document shape
used for JSON import/export and by the browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

TRADE_PRESETS = (
    "Glass & Glazing",
    "Storefront",
    "Curtain Wall",
    "Window Wall",
    "All-Glass Entrances",
    "Doors & Hardware",
    "Metal Panels",
    "Service",
    "General Conditions",
)
DEFAULT_TRADE = "Storefront"

# document key -> Scope attribute
LINE_COLLECTIONS = {
    "pricingItems":      "pricing_items",
    "services":          "services",
    "generalConditions": "general_conditions",
}


class AddOrDeduct(str, Enum):
    ADD = "ADD"
    DEDUCT = "DEDUCT"

    @property
    def sign(self) -> int:
        return -1 if self is AddOrDeduct.DEDUCT else 1


@dataclass
class LineItem:
    id: str
    description: str = ""
    unit: str = "LS"
    qty: float = 1.0
    unit_rate: float = 0.0

    @property
    def line_total(self) -> float:
        return self.qty * self.unit_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id":          self.id,
            "description": self.description,
            "unit":        self.unit,
            "qty":         self.qty,
            "unitRate":    self.unit_rate,
        }


@dataclass
class Alternate:
    id: str
    label: str = "Alt #"
    description: str = ""
    add_or_deduct: AddOrDeduct = AddOrDeduct.ADD
    amount: float = 0.0

    @property
    def signed_amount(self) -> float:
        """Amount with the sign implied by ``add_or_deduct``.

        ``amount`` itself is always stored unsigned.
        """
        return self.add_or_deduct.sign * self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id":          self.id,
            "label":       self.label,
            "description": self.description,
            "addOrDeduct": self.add_or_deduct.value,
            "amount":      self.amount,
        }


@dataclass
class Scope:
    id: str
    trade: str = DEFAULT_TRADE
    title: str = ""
    system: str = ""
    finish: str = ""
    glass_spec: str = ""
    performance: Dict[str, Any] = field(default_factory=dict)
    structural: Dict[str, Any] = field(default_factory=dict)
    inclusions: List[str] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    notes: str = ""
    schedule: Dict[str, Any] = field(default_factory=dict)
    pricing_items: List[LineItem] = field(default_factory=list)
    services: List[LineItem] = field(default_factory=list)
    general_conditions: List[LineItem] = field(default_factory=list)
    alternates: List[Alternate] = field(default_factory=list)

    def lines(self, collection: str) -> List[LineItem]:
        """Return the line-item list for a document key such as ``pricingItems``."""
        if collection not in LINE_COLLECTIONS:
            raise KeyError(f"Unknown line collection '{collection}'")
        return getattr(self, LINE_COLLECTIONS[collection])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id":                self.id,
            "trade":             self.trade,
            "title":             self.title,
            "system":            self.system,
            "finish":            self.finish,
            "glassSpec":         self.glass_spec,
            "performance":       dict(self.performance),
            "structural":        dict(self.structural),
            "inclusions":        list(self.inclusions),
            "exclusions":        list(self.exclusions),
            "notes":             self.notes,
            "schedule":          dict(self.schedule),
            "pricingItems":      [i.to_dict() for i in self.pricing_items],
            "services":          [i.to_dict() for i in self.services],
            "generalConditions": [i.to_dict() for i in self.general_conditions],
            "alternates":        [a.to_dict() for a in self.alternates],
        }


@dataclass
class CompanyInfo:
    name: str = "Del Ray Glass"
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    contact: str = ""
    logo_data_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name":        self.name,
            "address":     self.address,
            "phone":       self.phone,
            "email":       self.email,
            "website":     self.website,
            "contact":     self.contact,
            "logoDataUrl": self.logo_data_url,
        }


@dataclass
class ClientInfo:
    name: str = ""
    contact: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name":    self.name,
            "contact": self.contact,
            "email":   self.email,
            "phone":   self.phone,
            "address": self.address,
        }


@dataclass
class ProjectInfo:
    name: str = ""
    number: str = ""
    location: str = ""
    bid_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name":     self.name,
            "number":   self.number,
            "location": self.location,
            "bidDate":  self.bid_date,
        }


@dataclass
class CommercialTerms:
    tax_rate_pct: float = 0.0
    overhead_pct: float = 10.0
    profit_pct: float = 10.0
    bond_pct: float = 0.0
    currency: str = "USD"
    show_unit_rates: bool = True
    show_breakdown: bool = True
    include_bond: bool = False
    payment_terms: str = "Net 30 days from invoice; progress billing monthly."
    warranty: str = "Manufacturer’s standard; 2 years workmanship."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taxRatePct":    self.tax_rate_pct,
            "overheadPct":   self.overhead_pct,
            "profitPct":     self.profit_pct,
            "bondPct":       self.bond_pct,
            "currency":      self.currency,
            "showUnitRates": self.show_unit_rates,
            "showBreakdown": self.show_breakdown,
            "includeBond":   self.include_bond,
            "paymentTerms":  self.payment_terms,
            "warranty":      self.warranty,
        }


DEFAULT_DISCLAIMERS = (
    "Excludes permits, utilities relocation, and unforeseen conditions unless noted.",
    "Excludes structural engineering unless specifically included.",
    "Price valid 30 days; lead times subject to approved submittals and vendor confirmation.",
)


@dataclass
class Proposal:
    id: str
    created_at: str
    updated_at: str
    name: str = "Untitled Proposal"
    version: str = "1.0"
    company: CompanyInfo = field(default_factory=CompanyInfo)
    client: ClientInfo = field(default_factory=ClientInfo)
    project: ProjectInfo = field(default_factory=ProjectInfo)
    commercial_terms: CommercialTerms = field(default_factory=CommercialTerms)
    scopes: List[Scope] = field(default_factory=list)
    disclaimers: List[str] = field(default_factory=lambda: list(DEFAULT_DISCLAIMERS))

    def find_scope(self, scope_id: str) -> Scope:
        scope = next((s for s in self.scopes if s.id == scope_id), None)
        if scope is None:
            raise LookupError(f"Scope '{scope_id}' not found")
        return scope

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id":              self.id,
            "name":            self.name,
            "version":         self.version,
            "company":         self.company.to_dict(),
            "client":          self.client.to_dict(),
            "project":         self.project.to_dict(),
            "commercialTerms": self.commercial_terms.to_dict(),
            "scopes":          [s.to_dict() for s in self.scopes],
            "disclaimers":     list(self.disclaimers),
            "createdAt":       self.created_at,
            "updatedAt":       self.updated_at,
        }
