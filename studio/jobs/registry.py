"""Process-wide registry of in-flight jobs used for deduplication."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass

from studio.jobs.models import JobKind

JobKey = tuple[JobKind, str]


@dataclass(frozen=True)
class GuardToken:
  """Proof of ownership for one registry slot; only its holder may release it."""

  key: JobKey
  serial: int


class JobRegistry:
  """Atomic check-and-insert keyed by (kind, job_id); lives for the process only."""

  def __init__(self) -> None:
    self._lock = threading.Lock()
    self._active: dict[JobKey, GuardToken] = {}
    self._serials = itertools.count(1)

  def try_acquire(self, kind: JobKind, job_id: str) -> GuardToken | None:
    """Claim the slot, or return None when the same job is already running."""
    key: JobKey = (kind, job_id)
    with self._lock:
      if key in self._active:
        return None
      token = GuardToken(key=key, serial=next(self._serials))
      self._active[key] = token
      return token

  def release(self, token: GuardToken) -> bool:
    """Free the slot if ``token`` still owns it."""
    with self._lock:
      if self._active.get(token.key) != token:
        return False
      del self._active[token.key]
      return True

  def is_active(self, kind: JobKind, job_id: str) -> bool:
    with self._lock:
      return (kind, job_id) in self._active

  def active(self) -> list[JobKey]:
    with self._lock:
      return list(self._active)
