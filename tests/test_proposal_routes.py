import io
import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from proposal_builder import create_app
from proposal_builder.seed import sample_proposal
from proposal_builder.store import get_store


def setup_app():
    app = create_app('testing')
    with app.app_context():
        proposal = get_store().put(sample_proposal())
    return app, proposal.id


def test_index_redirects_to_list():
    app, _ = setup_app()
    resp = app.test_client().get('/')
    assert resp.status_code == 302
    assert '/proposals/' in resp.headers['Location']


def test_list_and_builder_pages_render():
    app, pid = setup_app()
    client = app.test_client()
    res = client.get('/proposals/')
    assert res.status_code == 200
    assert b'Maple Ridge Office Renovation' in res.data
    res = client.get(f'/proposals/{pid}')
    assert res.status_code == 200
    assert b'Main Entry Storefront' in res.data
    assert b'$4,530.00' in res.data


def test_preview_shows_summary_and_hides_bond_row():
    app, pid = setup_app()
    res = app.test_client().get(f'/proposals/{pid}/preview')
    assert res.status_code == 200
    assert b'Commercial Summary' in res.data
    assert b'Grand Total' in res.data
    assert b'Bond (' not in res.data
    assert b'Upgrade to SGP interlayer' in res.data


def test_totals_endpoint():
    app, pid = setup_app()
    data = app.test_client().get(f'/proposals/{pid}/totals').get_json()
    assert data['directTotal'] == 3000
    assert data['alternatesTotal'] == 900
    assert data['grandTotal'] == pytest.approx(4530)


def test_unknown_proposal_is_404():
    app, _ = setup_app()
    client = app.test_client()
    assert client.get('/proposals/missing').status_code == 404
    assert client.get('/proposals/missing/totals').status_code == 404


def test_import_normalizes_json_body():
    app, _ = setup_app()
    client = app.test_client()
    resp = client.post('/proposals/import', json={
        'id': 'imported',
        'scopes': [{'trade': '???', 'pricingItems': [{'qty': 'x', 'unitRate': 10}]}],
    })
    assert resp.status_code == 200
    doc = resp.get_json()['proposal']
    assert doc['id'] == 'imported'
    assert doc['scopes'][0]['trade'] == 'Storefront'
    assert doc['scopes'][0]['pricingItems'][0]['qty'] == 1
    with app.app_context():
        assert get_store().get('imported') is not None


def test_import_malformed_body_yields_default_proposal():
    app, _ = setup_app()
    resp = app.test_client().post('/proposals/import', data='{not json',
                                  content_type='application/json')
    assert resp.status_code == 200
    assert resp.get_json()['proposal']['name'] == 'Untitled Proposal'


def test_import_file_upload_and_export_roundtrip():
    app, pid = setup_app()
    client = app.test_client()
    exported = client.get(f'/proposals/{pid}/export')
    assert exported.status_code == 200
    assert 'attachment' in exported.headers['Content-Disposition']
    doc = json.loads(exported.data)
    doc['id'] = 'copy'
    resp = client.post('/proposals/import', data={
        'file': (io.BytesIO(json.dumps(doc).encode()), 'copy.json'),
    }, content_type='multipart/form-data')
    assert resp.status_code == 302
    assert client.get('/proposals/copy/document').get_json()['scopes'] == doc['scopes']


def test_create_and_delete_proposal():
    app, _ = setup_app()
    client = app.test_client()
    resp = client.post('/proposals/create')
    assert resp.status_code == 302
    new_id = resp.headers['Location'].rstrip('/').split('/')[-1]
    with app.app_context():
        assert get_store().get(new_id) is not None
    resp = client.post(f'/proposals/{new_id}/delete')
    assert resp.status_code == 302
    with app.app_context():
        assert get_store().get(new_id) is None


def test_edit_header_via_form_checkbox():
    app, pid = setup_app()
    client = app.test_client()
    resp = client.post(f'/proposals/{pid}/edit', data={
        'commercialTerms.includeBond': ['false', 'true'],
        'commercialTerms.bondPct': '5',
        'client.name': 'Maple Ridge LLC',
    })
    assert resp.status_code == 302
    doc = client.get(f'/proposals/{pid}/document').get_json()
    assert doc['commercialTerms']['includeBond'] is True
    assert doc['commercialTerms']['bondPct'] == 5
    assert doc['client']['name'] == 'Maple Ridge LLC'
    assert b'Bond (5%)' in client.get(f'/proposals/{pid}/preview').data


def test_line_item_json_endpoints():
    app, pid = setup_app()
    client = app.test_client()
    doc = client.get(f'/proposals/{pid}/document').get_json()
    sid = doc['scopes'][0]['id']
    base = f'/proposals/{pid}/scopes/{sid}/lines/services'

    resp = client.post(f'{base}/add', json={'description': 'Hoisting', 'unitRate': 200})
    data = resp.get_json()
    assert data['success'] is True
    item_id = data['item']['id']
    assert data['totals']['directTotal'] == 3200

    resp = client.post(f'{base}/{item_id}/update', json={'qty': 2})
    assert resp.get_json()['totals']['directTotal'] == 3400

    resp = client.post(f'{base}/{item_id}/remove', json={})
    assert resp.get_json()['totals']['directTotal'] == 3000

    assert client.post(f'{base}/{item_id}/update', json={}).status_code == 404
    bad = client.post(f'/proposals/{pid}/scopes/{sid}/lines/materials/add', json={})
    assert bad.status_code == 400


def test_alternate_and_scope_json_endpoints():
    app, pid = setup_app()
    client = app.test_client()
    resp = client.post(f'/proposals/{pid}/scopes', json={'trade': 'Window Wall'})
    scope = resp.get_json()['scope']
    assert scope['title'] == 'Window Wall Scope'
    sid = scope['id']

    resp = client.post(f'/proposals/{pid}/scopes/{sid}/alternates/add',
                       json={'addOrDeduct': 'DEDUCT', 'amount': 1000})
    data = resp.get_json()
    assert data['alternate']['addOrDeduct'] == 'DEDUCT'
    assert data['totals']['alternatesTotal'] == -100

    resp = client.post(f'/proposals/{pid}/scopes/{sid}/update', json={'title': 'WW-1'})
    data = resp.get_json()
    assert data['scope']['title'] == 'WW-1'
    assert data['scope_totals']['alternates'] == -1000

    resp = client.post(f'/proposals/{pid}/scopes/{sid}/remove', json={})
    assert resp.get_json()['totals']['alternatesTotal'] == 900
    assert client.post(f'/proposals/{pid}/scopes/{sid}/remove', json={}).status_code == 404


def test_sample_proposal_is_seeded_when_enabled():
    app = create_app('testing')
    with app.app_context():
        assert len(get_store()) == 0
    app.config['SEED_SAMPLE_PROPOSAL'] = True
    from proposal_builder.store import init_store
    store = init_store(app)
    assert len(store) == 1
    res = app.test_client().get('/proposals/')
    assert b'Maple Ridge Office Renovation' in res.data


def test_cleared_number_fields_read_zero():
    app, pid = setup_app()
    client = app.test_client()
    sid = client.get(f'/proposals/{pid}/document').get_json()['scopes'][0]['id']
    resp = client.post(f'/proposals/{pid}/scopes/{sid}/lines/pricingItems/p1/update',
                       data={'qty': '', 'unitRate': '25'})
    assert resp.status_code == 302
    resp = client.post(f'/proposals/{pid}/edit', data={'commercialTerms.overheadPct': ''})
    assert resp.status_code == 302

    doc = client.get(f'/proposals/{pid}/document').get_json()
    assert doc['scopes'][0]['pricingItems'][0]['qty'] == 0
    assert doc['commercialTerms']['overheadPct'] == 0
    assert doc['commercialTerms']['profitPct'] == 10
    totals = client.get(f'/proposals/{pid}/totals').get_json()
    assert totals['directTotal'] == 500
    assert totals['overhead'] == 0


def test_form_group_and_plain_key_with_same_name():
    app, pid = setup_app()
    client = app.test_client()
    resp = client.post(f'/proposals/{pid}/edit', data={'company': 'x', 'company.name': 'Acme Glass'})
    assert resp.status_code == 302
    assert client.get(f'/proposals/{pid}/document').get_json()['company']['name'] == 'Acme Glass'

    resp = client.post(f'/proposals/{pid}/edit', data={'client.name': 'Maple Ridge LLC', 'client': 'x'})
    assert resp.status_code == 302
    assert client.get(f'/proposals/{pid}/document').get_json()['client']['name'] == 'Maple Ridge LLC'
