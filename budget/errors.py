"""Error taxonomy shared by the store, the validators and the HTTP layer."""


class ValidationError(ValueError):
    """Input rejected before any write; carries every violation found."""

    def __init__(self, errors: list[dict[str, str]]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in self.errors))


class NotFoundError(LookupError):
    """Missing transaction, or one owned by somebody else."""

    def __init__(self, message: str = "Transaction not found"):
        super().__init__(message)


class StoreError(RuntimeError):
    pass
