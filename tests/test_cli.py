import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from proposal_builder import create_app
from proposal_builder.cli import proposal_cli
from proposal_builder.seed import sample_proposal


def write_doc(tmp_path, doc):
    path = tmp_path / 'proposal.json'
    path.write_text(json.dumps(doc), encoding='utf-8')
    return str(path)


def test_totals_command_prints_summary(tmp_path):
    app = create_app('testing')
    path = write_doc(tmp_path, sample_proposal().to_dict())
    result = app.test_cli_runner().invoke(proposal_cli, ['totals', path])
    assert result.exit_code == 0
    assert 'Maple Ridge Office Renovation' in result.output
    assert '$4,530.00' in result.output
    assert 'Bond' not in result.output


def test_totals_command_json(tmp_path):
    app = create_app('testing')
    path = write_doc(tmp_path, {'scopes': [{'pricingItems': [{'qty': 1, 'unitRate': 1000}]}],
                                'commercialTerms': {'includeBond': True, 'bondPct': 5}})
    result = app.test_cli_runner().invoke(proposal_cli, ['totals', '--json', path])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert round(data['bond'], 2) == 60.5
    assert round(data['grandTotal'], 2) == 1270.5


def test_normalize_command(tmp_path):
    app = create_app('testing')
    path = write_doc(tmp_path, {'id': 'p-1', 'scopes': [{'trade': 'nope'}]})
    result = app.test_cli_runner().invoke(proposal_cli, ['normalize', path])
    assert result.exit_code == 0
    doc = json.loads(result.output)
    assert doc['id'] == 'p-1'
    assert doc['scopes'][0]['trade'] == 'Storefront'


def test_invalid_json_file_fails_cleanly(tmp_path):
    app = create_app('testing')
    path = tmp_path / 'broken.json'
    path.write_text('{oops', encoding='utf-8')
    result = app.test_cli_runner().invoke(proposal_cli, ['totals', str(path)])
    assert result.exit_code != 0
    assert 'not valid JSON' in result.output
