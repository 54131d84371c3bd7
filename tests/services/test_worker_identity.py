from __future__ import annotations

import random
import re

from credential_service.services.worker_identity import WorkerIdentity


def test_fixed_identity_is_always_returned() -> None:
    identity = WorkerIdentity("issuer-1")
    assert {identity.resolve() for _ in range(20)} == {"issuer-1"}
    assert identity.configured == "issuer-1"


def test_empty_fixed_identity_counts_as_unconfigured() -> None:
    assert WorkerIdentity("").configured is None


def test_unconfigured_identity_synthesizes_labels() -> None:
    identity = WorkerIdentity()
    assert identity.configured is None
    for _ in range(50):
        label = identity.resolve()
        assert re.fullmatch(r"worker-\d{1,3}", label)


def test_unconfigured_labels_are_drawn_per_call() -> None:
    identity = WorkerIdentity(rng=random.Random(1234))
    labels = {identity.resolve() for _ in range(100)}
    assert len(labels) > 1


def test_seeded_rng_is_reproducible() -> None:
    a = WorkerIdentity(rng=random.Random(7))
    b = WorkerIdentity(rng=random.Random(7))
    assert [a.resolve() for _ in range(5)] == [b.resolve() for _ in range(5)]
