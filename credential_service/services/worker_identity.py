"""Worker identity: a diagnostic label for "which instance did this?".

When WORKER_ID is configured (one per replica/pod), every issuance and
verification from this process carries that label, which makes issuance
attribution deterministic and easy to assert on in tests.

When it is NOT configured, a fresh ``worker-<0..999>`` label is drawn on
every call.  Two issuances from the same process can therefore carry
different labels.  The label is purely diagnostic; nothing reads it back
to make a decision, so this non-determinism is accepted.
"""

from __future__ import annotations

import random


class WorkerIdentity:
    def __init__(self, fixed: str | None = None, rng: random.Random | None = None) -> None:
        self._fixed = fixed or None
        self._rng = rng or random.Random()

    @property
    def configured(self) -> str | None:
        """The fixed identity, or None when labels are synthesized per call."""
        return self._fixed

    def resolve(self) -> str:
        if self._fixed is not None:
            return self._fixed
        return f"worker-{self._rng.randrange(1000)}"
