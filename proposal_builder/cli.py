import json
import logging

import click

from proposal_builder.sanitize import normalize_proposal
from proposal_builder.totals import compute_proposal_totals, format_currency


def _load(path: str):
    with open(path, "r", encoding="utf-8") as fh:
        try:
            return json.load(fh)
        except ValueError as e:
            raise click.ClickException(f"{path} is not valid JSON: {e}")


@click.group("proposal")
def proposal_cli() -> None:
    """Proposal document commands."""


@proposal_cli.command("normalize")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def normalize_command(path: str) -> None:
    """Print the normalized form of a proposal JSON file."""
    proposal = normalize_proposal(_load(path))
    click.echo(json.dumps(proposal.to_dict(), indent=2))


@proposal_cli.command("totals")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print totals as JSON")
def totals_command(path: str, as_json: bool) -> None:
    """Print the commercial summary for a proposal JSON file."""
    proposal = normalize_proposal(_load(path))
    totals = compute_proposal_totals(proposal)
    logging.info("computed totals for %s (%d scopes)", proposal.id, len(proposal.scopes))
    if as_json:
        click.echo(json.dumps(totals.to_dict(), indent=2))
        return

    terms = proposal.commercial_terms
    cur = terms.currency
    rows = [("Direct Total", totals.direct_total)]
    rows.append((f"Overhead ({terms.overhead_pct:g}%)", totals.overhead))
    rows.append((f"Profit ({terms.profit_pct:g}%)", totals.profit))
    if terms.include_bond:
        rows.append((f"Bond ({terms.bond_pct:g}%)", totals.bond))
    rows.append((f"Tax ({terms.tax_rate_pct:g}%)", totals.tax))
    if totals.alternates_total:
        rows.append(("Alternates (net)", totals.alternates_total))
    rows.append(("Grand Total", totals.grand_total))

    click.echo(proposal.name)
    for label, amount in rows:
        click.echo(f"  {label:<24}{format_currency(amount, cur):>18}")
