# proposal_builder/proposals/routes.py

import json
import logging
from contextlib import contextmanager

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    jsonify,
    make_response,
    redirect,
    render_template,
    request,
    url_for,
)

from proposal_builder.models import LINE_COLLECTIONS, TRADE_PRESETS
from proposal_builder.sanitize import normalize_proposal
from proposal_builder.store import get_store
from proposal_builder.totals import calc_scope_totals, compute_proposal_totals
from proposal_builder.proposals.utils import (
    add_alternate,
    add_line_item,
    add_scope,
    apply_header,
    new_proposal,
    remove_alternate,
    remove_line_item,
    remove_scope,
    touch,
    update_alternate,
    update_line_item,
    update_scope,
)

bp = Blueprint('proposals', __name__)


def _payload() -> dict:
    """
    JSON body when sent as JSON (malformed JSON counts as empty), otherwise
    the form with dotted keys nested: ``company.name`` -> {company: {name}}.
    The last value wins for repeated keys, so a hidden "false" followed by a
    checkbox reads as a boolean. A group always beats a plain value posted
    under the same name.
    """
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    out = {}
    for key, values in request.form.lists():
        node = out
        *parents, leaf = key.split('.')
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        if not isinstance(node.get(leaf), dict):
            node[leaf] = values[-1]
    return out


@contextmanager
def _editing(proposal_id):
    """Yield the stored proposal with the store lock held, or abort with 404."""
    with get_store().editing(proposal_id) as proposal:
        if proposal is None:
            abort(404)
        yield proposal


def _proposal_or_404(proposal_id):
    proposal = get_store().get(proposal_id)
    if proposal is None:
        abort(404)
    return proposal


def _scope_or_404(proposal, scope_id):
    try:
        return proposal.find_scope(scope_id)
    except LookupError:
        abort(404)


def _respond(current, **payload):
    """JSON callers get the changed entity plus fresh totals; forms go back to the builder."""
    if request.is_json:
        totals = compute_proposal_totals(current)
        return jsonify(success=True, totals=totals.to_dict(), **payload)
    return redirect(url_for('proposals.view_proposal', proposal_id=current.id))


@bp.route('/')
def list_proposals():
    proposals = get_store().all()
    summaries = [(p, compute_proposal_totals(p)) for p in proposals]
    return render_template('proposals/list.html', summaries=summaries)


@bp.route('/create', methods=['GET', 'POST'])
def create_proposal():
    """Create a blank proposal and redirect into its builder."""
    proposal = get_store().put(new_proposal(current_app.config.get('DEFAULT_CURRENCY')))
    logging.info("created proposal %s", proposal.id)
    return redirect(url_for('proposals.view_proposal', proposal_id=proposal.id))


@bp.route('/import', methods=['POST'])
def import_proposal():
    """
    Accept a proposal document as a JSON body or an uploaded ``file`` and
    store the normalized result. An existing proposal with the same id is
    replaced.
    """
    upload = request.files.get('file')
    if upload is not None:
        try:
            raw = json.loads(upload.read().decode('utf-8'))
        except (UnicodeDecodeError, ValueError):
            flash('Could not read that file as JSON', 'danger')
            return redirect(url_for('proposals.list_proposals'))
    else:
        raw = request.get_json(silent=True)

    proposal = get_store().put(normalize_proposal(raw))
    logging.info("imported proposal %s with %d scope(s)", proposal.id, len(proposal.scopes))
    if upload is not None:
        flash(f"Imported '{proposal.name}'", 'success')
        return redirect(url_for('proposals.view_proposal', proposal_id=proposal.id))
    return jsonify(success=True, proposal=proposal.to_dict())


@bp.route('/<proposal_id>')
def view_proposal(proposal_id):
    proposal = _proposal_or_404(proposal_id)
    totals = compute_proposal_totals(proposal)
    scope_totals = {t.id: t for t in totals.by_scope}
    return render_template(
        'proposals/builder.html',
        proposal=proposal,
        totals=totals,
        scope_totals=scope_totals,
        trades=TRADE_PRESETS,
        collections=LINE_COLLECTIONS,
    )


@bp.route('/<proposal_id>/preview')
def preview_proposal(proposal_id):
    proposal = _proposal_or_404(proposal_id)
    totals = compute_proposal_totals(proposal)
    scope_totals = {t.id: t for t in totals.by_scope}
    return render_template(
        'proposals/preview.html',
        proposal=proposal,
        totals=totals,
        scope_totals=scope_totals,
    )


@bp.route('/<proposal_id>/document')
def proposal_document(proposal_id):
    proposal = _proposal_or_404(proposal_id)
    return jsonify(proposal.to_dict())


@bp.route('/<proposal_id>/totals')
def proposal_totals(proposal_id):
    proposal = _proposal_or_404(proposal_id)
    return jsonify(compute_proposal_totals(proposal).to_dict())


@bp.route('/<proposal_id>/export')
def export_proposal(proposal_id):
    """Download the proposal document as a JSON file."""
    proposal = _proposal_or_404(proposal_id)
    resp = make_response(json.dumps(proposal.to_dict(), indent=2))
    filename = (proposal.project.number or proposal.id).replace('"', '')
    resp.headers['Content-Disposition'] = f'attachment; filename="{filename}.json"'
    resp.mimetype = 'application/json'
    return resp


@bp.route('/<proposal_id>/edit', methods=['POST'])
def edit_proposal(proposal_id):
    with _editing(proposal_id) as proposal:
        updated = get_store().put(apply_header(proposal, _payload()))
        return _respond(updated, proposal=updated.to_dict())


@bp.route('/<proposal_id>/delete', methods=['POST'])
def delete_proposal(proposal_id):
    """
    Delete a proposal and redirect back to the list view.
    """
    with _editing(proposal_id) as proposal:
        get_store().delete(proposal_id)
    logging.info("deleted proposal %s", proposal_id)
    flash(f"Proposal '{proposal.name}' deleted", 'success')
    return redirect(url_for('proposals.list_proposals'))


# ---------- scopes ----------

@bp.route('/<proposal_id>/scopes', methods=['POST'])
def create_scope(proposal_id):
    with _editing(proposal_id) as proposal:
        scope = add_scope(proposal, _payload())
        return _respond(proposal, scope=scope.to_dict())


@bp.route('/<proposal_id>/scopes/<scope_id>/update', methods=['POST'])
def edit_scope(proposal_id, scope_id):
    with _editing(proposal_id) as proposal:
        _scope_or_404(proposal, scope_id)
        scope = update_scope(proposal, scope_id, _payload())
        return _respond(proposal, scope=scope.to_dict(), scope_totals=calc_scope_totals(scope).to_dict())


@bp.route('/<proposal_id>/scopes/<scope_id>/remove', methods=['POST'])
def delete_scope(proposal_id, scope_id):
    with _editing(proposal_id) as proposal:
        _scope_or_404(proposal, scope_id)
        remove_scope(proposal, scope_id)
        return _respond(proposal)


# ---------- line items ----------

def _unknown_collection(collection):
    return jsonify(error=f"Unknown line collection '{collection}'"), 400


@bp.route('/<proposal_id>/scopes/<scope_id>/lines/<collection>/add', methods=['POST'])
def create_line_item(proposal_id, scope_id, collection):
    with _editing(proposal_id) as proposal:
        scope = _scope_or_404(proposal, scope_id)
        if collection not in LINE_COLLECTIONS:
            return _unknown_collection(collection)
        item = add_line_item(scope, collection, _payload())
        touch(proposal)
        return _respond(proposal, item=item.to_dict())


@bp.route('/<proposal_id>/scopes/<scope_id>/lines/<collection>/<item_id>/update', methods=['POST'])
def edit_line_item(proposal_id, scope_id, collection, item_id):
    with _editing(proposal_id) as proposal:
        scope = _scope_or_404(proposal, scope_id)
        if collection not in LINE_COLLECTIONS:
            return _unknown_collection(collection)
        try:
            item = update_line_item(scope, collection, item_id, _payload())
        except LookupError as e:
            return jsonify(error=str(e)), 404
        touch(proposal)
        return _respond(proposal, item=item.to_dict())


@bp.route('/<proposal_id>/scopes/<scope_id>/lines/<collection>/<item_id>/remove', methods=['POST'])
def delete_line_item(proposal_id, scope_id, collection, item_id):
    with _editing(proposal_id) as proposal:
        scope = _scope_or_404(proposal, scope_id)
        if collection not in LINE_COLLECTIONS:
            return _unknown_collection(collection)
        try:
            remove_line_item(scope, collection, item_id)
        except LookupError as e:
            return jsonify(error=str(e)), 404
        touch(proposal)
        return _respond(proposal)


# ---------- alternates ----------

@bp.route('/<proposal_id>/scopes/<scope_id>/alternates/add', methods=['POST'])
def create_alternate(proposal_id, scope_id):
    with _editing(proposal_id) as proposal:
        scope = _scope_or_404(proposal, scope_id)
        alt = add_alternate(scope, _payload())
        touch(proposal)
        return _respond(proposal, alternate=alt.to_dict())


@bp.route('/<proposal_id>/scopes/<scope_id>/alternates/<alt_id>/update', methods=['POST'])
def edit_alternate(proposal_id, scope_id, alt_id):
    with _editing(proposal_id) as proposal:
        scope = _scope_or_404(proposal, scope_id)
        try:
            alt = update_alternate(scope, alt_id, _payload())
        except LookupError as e:
            return jsonify(error=str(e)), 404
        touch(proposal)
        return _respond(proposal, alternate=alt.to_dict())


@bp.route('/<proposal_id>/scopes/<scope_id>/alternates/<alt_id>/remove', methods=['POST'])
def delete_alternate(proposal_id, scope_id, alt_id):
    with _editing(proposal_id) as proposal:
        scope = _scope_or_404(proposal, scope_id)
        try:
            remove_alternate(scope, alt_id)
        except LookupError as e:
            return jsonify(error=str(e)), 404
        touch(proposal)
        return _respond(proposal)
