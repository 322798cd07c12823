"""Failure taxonomy for media production jobs."""

from __future__ import annotations


class StudioError(Exception):
  """Base class for every failure raised by the media pipeline."""


class InvalidJobPayloadError(StudioError):
  """Raised when a trigger payload does not match the job kind's request model."""


class StageError(StudioError):
  """Raised when one generative stage cannot produce a usable result."""

  def __init__(self, stage: str, message: str) -> None:
    super().__init__(f"{stage}: {message}")
    self.stage = stage


class StructuredOutputError(StageError):
  """Structured or text output was missing, malformed, or shaped wrong."""


class MissingAssetError(StageError):
  """The service answered without the expected binary payload."""


class OperationTimeoutError(StageError):
  """A long-running remote render did not complete within the allowed window."""


class MediaToolUnavailableError(StudioError):
  """The external media binary is not installed or not executable."""


class MediaToolError(StudioError):
  """The external media tool exited non-zero."""

  def __init__(self, command: list[str], returncode: int | None, stderr: str) -> None:
    tail = stderr.strip().splitlines()[-5:] if stderr else []
    summary = " | ".join(tail) or "no diagnostics"
    super().__init__(f"{command[0] if command else 'media tool'} exited with {returncode}: {summary}")
    self.command = command
    self.returncode = returncode
    self.stderr = stderr


class UploadError(StudioError):
  """Writing an artifact to the object store failed."""


class CourseNotFoundError(StudioError):
  """The course a skill tree was requested for does not exist."""
