"""Step definitions for result reconciliation BDD scenarios."""
from __future__ import annotations

from pytest_bdd import given, parsers, scenarios, then

from domain.models import LedgerEntry, OutcomeRecord
from test.mocks.portal_scripts import report_detail, report_row

from .conftest import NOW, PortalContext, make_account

scenarios("../features/result_reconciliation.feature")


# -- Given steps --------------------------------------------------------------


@given(parsers.parse('an account "{username}" with an empty ledger'))
def given_empty_ledger(ctx: PortalContext, username: str) -> None:
    ctx.accounts.append(make_account(username))


@given(parsers.parse('an account "{username}" whose ledger has "{name}" with status "{status}"'))
def given_ledger_record(ctx: PortalContext, username: str, name: str, status: str) -> None:
    ctx.accounts.append(make_account(username))
    alloted = status == "Alloted"
    record = OutcomeRecord(company_name=name, status=status, is_alloted=alloted, alloted_qty=10 if alloted else 0)
    ctx.ledger.save({username: LedgerEntry(last_updated="2025-05-01T00:00:00+00:00", items=(record,))})


@given(parsers.parse('the report lists "{name}" with status "{status}" and {alloted:d} alloted'))
def given_report_entry(ctx: PortalContext, name: str, status: str, alloted: int) -> None:
    ctx.report_details[len(ctx.report_rows)] = report_detail(status, alloted=str(alloted))
    ctx.report_rows.append(report_row(name))


# -- Then steps ---------------------------------------------------------------


def _only_result(ctx: PortalContext):
    assert ctx.summary is not None
    assert len(ctx.summary.results) == 1
    return ctx.summary.results[0]


@then(parsers.parse('the ledger for "{username}" holds "{names}"'))
def then_ledger_holds(ctx: PortalContext, username: str, names: str) -> None:
    entry = ctx.ledger.load()[username]
    assert [r.company_name for r in entry.items] == names.split(",")
    assert entry.last_updated == NOW.isoformat()


@then(parsers.parse('the ledger for "{username}" shows "{name}" with {qty:d} alloted'))
def then_ledger_shows(ctx: PortalContext, username: str, name: str, qty: int) -> None:
    records = {r.company_name: r for r in ctx.ledger.load()[username].items}
    assert records[name].is_alloted is True
    assert records[name].alloted_qty == qty


@then(parsers.parse('the new allotments are "{names}"'))
def then_new_allotments(ctx: PortalContext, names: str) -> None:
    result = _only_result(ctx)
    assert [r.company_name for r in result.changes.new_allotments] == names.split(",")


@then("there are no new allotments")
def then_no_new_allotments(ctx: PortalContext) -> None:
    assert _only_result(ctx).changes.new_allotments == ()


@then(parsers.parse('only "{name}" was opened'))
def then_only_opened(ctx: PortalContext, name: str) -> None:
    driver = ctx.drivers[0]
    opened = [row for ref, row in driver.clicks if ref == "report.open_button"]
    names = [ctx.report_rows[row]["name"] for row in opened]
    assert names == [name]
