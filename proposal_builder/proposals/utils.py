# proposal_builder/proposals/utils.py

"""Editing helpers for the proposals blueprint.

Every change goes back through the normalizer so the in-memory model never
holds an unchecked value. Scopes, line items and alternates are edited in
place and addressed by id; unknown ids raise ``LookupError``.
"""

from collections.abc import Mapping

from proposal_builder.models import Alternate, LineItem, Proposal, Scope
from proposal_builder.sanitize import (
    normalize_alternate,
    normalize_line_item,
    normalize_proposal,
    normalize_scope,
    utcnow_iso,
)

HEADER_GROUPS = ('company', 'client', 'project', 'commercialTerms')
HEADER_FIELDS = ('name', 'version', 'disclaimers')


def _patch(raw) -> dict:
    return dict(raw) if isinstance(raw, Mapping) else {}


def _index_of(items, item_id, kind):
    for idx, it in enumerate(items):
        if it.id == item_id:
            return idx
    raise LookupError(f"{kind} '{item_id}' not found")


def touch(proposal: Proposal) -> Proposal:
    proposal.updated_at = utcnow_iso()
    return proposal


def new_proposal(currency: str | None = None) -> Proposal:
    raw = {'commercialTerms': {'currency': currency}} if currency else {}
    return normalize_proposal(raw)


def apply_header(proposal: Proposal, patch) -> Proposal:
    """
    Return a new proposal with ``patch`` applied to its header.
    Nested groups (company, client, project, commercialTerms) are merged
    key by key; name, version and disclaimers are replaced. Scopes are left
    alone.
    """
    patch = _patch(patch)
    doc = proposal.to_dict()
    for group in HEADER_GROUPS:
        if isinstance(patch.get(group), Mapping):
            doc[group] = {**doc[group], **patch[group]}
    for key in HEADER_FIELDS:
        if key in patch:
            doc[key] = patch[key]
    doc['updatedAt'] = utcnow_iso()
    return normalize_proposal(doc)


# ---------- scopes ----------

def new_scope(trade: str | None = None) -> Scope:
    return normalize_scope({'trade': trade} if trade else {})


def add_scope(proposal: Proposal, raw=None) -> Scope:
    data = _patch(raw)
    data.pop('id', None)
    scope = normalize_scope(data)
    proposal.scopes.append(scope)
    touch(proposal)
    return scope


def update_scope(proposal: Proposal, scope_id: str, patch) -> Scope:
    idx = _index_of(proposal.scopes, scope_id, 'Scope')
    merged = {**proposal.scopes[idx].to_dict(), **_patch(patch), 'id': scope_id}
    scope = normalize_scope(merged)
    proposal.scopes[idx] = scope
    touch(proposal)
    return scope


def remove_scope(proposal: Proposal, scope_id: str) -> None:
    idx = _index_of(proposal.scopes, scope_id, 'Scope')
    del proposal.scopes[idx]
    touch(proposal)


# ---------- line items ----------

def add_line_item(scope: Scope, collection: str, raw=None) -> LineItem:
    items = scope.lines(collection)
    data = _patch(raw)
    data.pop('id', None)
    item = normalize_line_item(data)
    items.append(item)
    return item


def update_line_item(scope: Scope, collection: str, item_id: str, patch) -> LineItem:
    items = scope.lines(collection)
    idx = _index_of(items, item_id, 'Line item')
    merged = {**items[idx].to_dict(), **_patch(patch), 'id': item_id}
    items[idx] = normalize_line_item(merged)
    return items[idx]


def remove_line_item(scope: Scope, collection: str, item_id: str) -> None:
    items = scope.lines(collection)
    del items[_index_of(items, item_id, 'Line item')]


# ---------- alternates ----------

def add_alternate(scope: Scope, raw=None) -> Alternate:
    data = {'label': 'Alt', **_patch(raw)}
    data.pop('id', None)
    alt = normalize_alternate(data)
    scope.alternates.append(alt)
    return alt


def update_alternate(scope: Scope, alt_id: str, patch) -> Alternate:
    idx = _index_of(scope.alternates, alt_id, 'Alternate')
    merged = {**scope.alternates[idx].to_dict(), **_patch(patch), 'id': alt_id}
    scope.alternates[idx] = normalize_alternate(merged)
    return scope.alternates[idx]


def remove_alternate(scope: Scope, alt_id: str) -> None:
    del scope.alternates[_index_of(scope.alternates, alt_id, 'Alternate')]
