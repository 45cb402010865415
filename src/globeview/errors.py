# SPDX-License-Identifier: Apache-2.0
"""Error taxonomy and the single user-facing error reporting path."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Literal

from pydantic import BaseModel

from .utils.cli_helpers import sanitize_for_log

LOGGER = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = (
    "An error occurred while loading the file, which may indicate that it is "
    "invalid.  A detailed error report is below:"
)

ErrorKind = Literal["construction", "load", "reference", "config"]


class ErrorReport(BaseModel):
    kind: ErrorKind
    title: str
    message: str = ""
    detail: str | None = None


class GlobeViewError(Exception):
    """Base class for startup failures; carries the report shown to the user."""

    kind: ErrorKind = "load"

    def __init__(self, title: str, message: str = "", detail: str | None = None) -> None:
        super().__init__(title)
        self.report = ErrorReport(kind=self.kind, title=title, message=message, detail=detail)


class ConstructionFailure(GlobeViewError):
    """The viewer could not be created; startup stops."""

    kind = "construction"


class LoadFailure(GlobeViewError):
    """A dataset could not be resolved, fetched, parsed or attached."""

    kind = "load"


class ReferenceFailure(GlobeViewError):
    """A named entity was not found in the loaded dataset."""

    kind = "reference"


class ConfigFailure(GlobeViewError):
    """An option value is not recognized."""

    kind = "config"


def load_error_title(name: str) -> str:
    return f"An error occurred while loading the file: {name}"


def missing_entity_message(entity_id: str) -> str:
    return f'No entity with id "{entity_id}" exists in the provided data source.'


def format_error(error: Any) -> str:
    """Render ``error`` for display: strings as-is, exceptions with traceback."""

    if error is None:
        return ""
    if isinstance(error, str):
        return error
    if isinstance(error, BaseException):
        text = "".join(traceback.format_exception_only(type(error), error)).strip()
        if error.__traceback__ is not None:
            stack = "".join(traceback.format_tb(error.__traceback__)).rstrip()
            text = f"{text}\n{stack}"
        return text
    return str(error)


class ErrorReporter:
    """Show errors on the viewer's error panel without ever raising.

    Every report is also logged and kept on :attr:`reports` in order.
    """

    def __init__(self, viewer: Any) -> None:
        self._viewer = viewer
        self.reports: list[ErrorReport] = []

    def report_load_error(self, name: str, error: Any) -> ErrorReport:
        return self.report_failure(
            LoadFailure(load_error_title(name), LOAD_ERROR_MESSAGE, format_error(error))
        )

    def report_failure(self, failure: GlobeViewError) -> ErrorReport:
        self._show(failure.report)
        return failure.report

    def _show(self, report: ErrorReport) -> None:
        self.reports.append(report)
        LOGGER.warning(
            "%s%s", sanitize_for_log(report.title), f": {report.detail}" if report.detail else ""
        )
        try:
            self._viewer.show_error_panel(report.title, report.message, report.detail)
        except Exception:
            LOGGER.exception("Failed to display error panel for %r", report.title)
