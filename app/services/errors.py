"""Failure types raised by the career generation pipeline."""

from __future__ import annotations

from typing import Optional


class CareerAIError(RuntimeError):
    """Base class for pipeline failures."""


class GenerationFailure(CareerAIError):
    """The call to the generative model failed (network, quota, timeout)."""

    def __init__(self, task: str, message: str):
        super().__init__(f"{task}: {message}")
        self.task = task
        self.message = message


class ModelOutputNotJSON(CareerAIError):
    """No extraction strategy produced a parseable JSON value."""

    def __init__(self, raw_text: str, last_error: Optional[Exception] = None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"Model did not return valid JSON{detail}")
        self.raw_text = raw_text
        self.last_error = last_error


class ValidationRejected(CareerAIError):
    """The parsed value has the wrong top-level shape for the task."""

    def __init__(self, task: str, reason: str):
        super().__init__(f"{task}: {reason}")
        self.task = task
        self.reason = reason
