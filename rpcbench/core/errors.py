"""Exceptions raised by the benchmarking engine."""


class BenchmarkError(Exception):
    """Base class for engine errors."""


class DriverInitializationError(BenchmarkError):
    """A transport driver could not establish its channel or pool."""

    def __init__(self, protocol: str, message: str):
        super().__init__(f"{protocol} driver failed to initialize: {message}")
        self.protocol = protocol


class TestNotFoundError(BenchmarkError, LookupError):
    """No test with the given id exists in the registry."""

    __test__ = False

    def __init__(self, test_id: str):
        super().__init__(f"Test {test_id} not found")
        self.test_id = test_id
