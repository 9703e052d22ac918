"""Exceptions understood by the job runner."""


class FatalRecordError(Exception):
    """Raised by a record action when the rest of its job must be abandoned.

    Sibling jobs are unaffected; only the job whose record raised stops
    pulling new records.
    """

    pass


class GateTimeoutError(TimeoutError):
    """Raised when a dependency gate is not opened within the allowed time."""

    def __init__(self, gate_name: str, timeout: float):
        super().__init__(f"Dependency gate '{gate_name}' not opened within {timeout}s")
        self.gate_name = gate_name
        self.timeout = timeout
