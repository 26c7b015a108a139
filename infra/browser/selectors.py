"""Logical element references mapped onto the portal's markup.

Services only ever talk about refs such as ``"login.username"``; this table
is the single place that knows the concrete CSS selectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union


@dataclass(frozen=True)
class Css:
    """A single element; the first match wins."""

    selector: str

    @property
    def anchor(self) -> str:
        return self.selector


@dataclass(frozen=True)
class RowField:
    """A value read from inside one row.

    An empty selector reads the row itself; ``present`` yields whether the
    selector matches anything instead of its text.
    """

    selector: str = ""
    kind: str = "text"


@dataclass(frozen=True)
class RowList:
    """Repeated rows; ``click(ref, row=i)`` clicks ``action`` inside row ``i``."""

    container: str
    fields: Mapping[str, RowField] = field(default_factory=dict)
    action: str | None = None

    @property
    def anchor(self) -> str:
        return self.container


@dataclass(frozen=True)
class LabelValue:
    """The value shown next to a label inside a grouping element."""

    group: str
    label: str
    value: str

    @property
    def anchor(self) -> str:
        return self.group


@dataclass(frozen=True)
class LabeledBlock:
    """A detail view rendered as label/value pairs in one of several layouts."""

    anchor: str
    layouts: tuple[tuple[str, str, str], ...]


ElementSpec = Union[Css, RowList, LabelValue, LabeledBlock]


_ISSUE_ROWS = RowList(
    container=".company-list",
    fields={
        "name": RowField('.company-name span[tooltip="Company Name"]'),
        "share_type": RowField(".share-of-type"),
        "group": RowField(".isin"),
        "sub_group": RowField('span[tooltip="Sub Group"]'),
        "can_apply": RowField("button.btn-issue", kind="present"),
    },
    action="button.btn-issue",
)

_REPORT_ROWS = RowList(
    container=".company-list",
    fields={
        "name": RowField('.company-name span[tooltip="Company Name"]'),
        "share_type": RowField(".share-of-type"),
        "group": RowField(".isin"),
    },
    action="button.btn-issue",
)

DEFAULT_REFS: Mapping[str, ElementSpec] = MappingProxyType(
    {
        # login
        "login.form": Css("form.login-form, form"),
        "login.dp_dropdown": Css(".select2-selection--single"),
        "login.dp_search": Css("input.select2-search__field"),
        "login.dp_options": RowList(
            container=".select2-results__option",
            fields={"text": RowField()},
        ),
        "login.username": Css("input#username"),
        "login.password": Css("input#password"),
        "login.submit": Css('button[type="submit"]'),
        "login.error": Css(".toast-error, .alert-danger, .text-danger"),
        "dashboard.indicator": Css(
            'app-dashboard, .sidebar-nav, .app-body .sidebar, a[href="#/asba"], .user-profile-name'
        ),
        # asba listing
        "asba.page": Css("app-asba, .company-list, .page-title-wrapper"),
        "asba.company_list": _ISSUE_ROWS,
        "asba.apply_button": _ISSUE_ROWS,
        "asba.report_tab": Css(".nav-link:has-text('Application Report')"),
        # application form
        "form.container": Css("select#selectBank, .section-title, .card-body"),
        "form.minimum_quantity": LabelValue(
            group=".form-group, .row",
            label="Minimum Quantity",
            value=".form-value span",
        ),
        "form.bank": Css("select#selectBank"),
        "form.account": Css("select#accountNumber"),
        "form.kitta": Css("input#appliedKitta"),
        "form.amount": Css("input#amount"),
        "form.crn": Css("input#crnNumber"),
        "form.disclaimer": Css("input#disclaimer"),
        "form.pin": Css("input#transactionPIN"),
        "form.submit": Css('button.btn-primary[type="submit"]:enabled'),
        "form.validation_error": Css(".text-danger, .invalid-feedback"),
        # feedback
        "toast.success": Css(".toast-success"),
        "toast.error": Css(".toast-error"),
        "alert.error": Css(".alert-danger"),
        "page.body": Css("body"),
        # application report
        "report.company_list": _REPORT_ROWS,
        "report.open_button": _REPORT_ROWS,
        "report.detail": LabeledBlock(
            anchor="app-application-report, .section-block .form-group",
            layouts=(
                (".section-block--borderless .col-md-12 .row", ".col-md-3 label", ".col-md-7 .input-group label"),
                (".section-block .col-md-4 .form-group", "label", ".form-value span"),
            ),
        ),
        "report.back": Css(".casba-bck-btn, .back-button-block button"),
    }
)


def resolve(ref: str, refs: Mapping[str, ElementSpec] = DEFAULT_REFS) -> ElementSpec:
    try:
        return refs[ref]
    except KeyError:
        raise KeyError(f"Unknown element reference: {ref}") from None
