"""Error taxonomy shared by the store backends, services and HTTP layer.

  InvalidInput     : caller sent no usable id.  Surfaces as 400.
  StoreUnavailable : the store could not answer (connectivity, timeout,
                     anything but a uniqueness violation).  Surfaces as
                     500 with the store's message passed through.

A uniqueness violation is not an exception: the store reports it as a
typed insert result (see repos/credential_store.py), and during issuance
it is a normal race outcome.
"""

from __future__ import annotations


class CredentialServiceError(Exception):
    """Base class for errors raised by the credential services."""


class InvalidInput(CredentialServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreUnavailable(CredentialServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
