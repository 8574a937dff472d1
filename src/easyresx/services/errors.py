# SPDX-License-Identifier: GPL-3.0-or-later
"""Error types raised while editing a resource group."""

from __future__ import annotations

from typing import Any, Dict


class EditError(Exception):
    """Base class for failures surfaced to the user."""


class StoreIOFailure(EditError):
    """A resource file could not be read or written."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class PartialFanoutFailure(EditError):
    """Some of the per-file calls of one logical edit failed.

    ``succeeded`` maps file path → result for the calls that went through,
    ``failures`` maps file path → the exception of each failed call.
    """

    def __init__(self, succeeded: Dict[str, Any], failures: Dict[str, Exception]):
        names = ", ".join(sorted(failures))
        super().__init__(
            f"{len(failures)} of {len(succeeded) + len(failures)} files failed: {names}"
        )
        self.succeeded = succeeded
        self.failures = failures


class UndoReversalFailure(EditError):
    """One step of reversing a history action failed."""

    def __init__(self, action, step: str, cause: Exception):
        super().__init__(f"Undo failed at {step}: {cause}")
        self.action = action
        self.step = step
        self.cause = cause


class ValidationFailure(EditError):
    """An edit was rejected before touching any file."""
