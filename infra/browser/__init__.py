from .playwright_session import PlaywrightSessionDriver
from .selectors import DEFAULT_REFS, Css, LabeledBlock, LabelValue, RowField, RowList

__all__ = [
    "PlaywrightSessionDriver",
    "DEFAULT_REFS",
    "Css",
    "LabeledBlock",
    "LabelValue",
    "RowField",
    "RowList",
]
