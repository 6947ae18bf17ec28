"""Exceptions raised by the draft lifecycle and the sheet transport."""

from __future__ import annotations


class MdtError(Exception):
    """Base class for errors that are shown to the user as a notice."""

    notice = "Something went wrong with this report."

    def __str__(self) -> str:
        return self.args[0] if self.args else self.notice


class DraftNotFound(MdtError):
    notice = "No open report found. Start a new one with `/mdt`."


class DraftExpired(MdtError):
    notice = "This report draft has expired. Start a new one with `/mdt`."


class NotDraftOwner(MdtError):
    notice = "Only the officer who started this report can change it."


class InvalidTransition(MdtError):
    notice = "That action is not available for this report right now."


class SheetsError(MdtError):
    notice = "The spreadsheet could not be reached."
