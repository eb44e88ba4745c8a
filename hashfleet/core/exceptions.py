"""Custom exceptions for the job fleet"""


class HashFleetError(Exception):
    """Base exception for all hashfleet errors"""

    pass


class ConfigurationError(HashFleetError):
    """Raised when settings are missing or inconsistent"""

    pass


class AdmissionError(HashFleetError):
    """Raised when a submission is rejected before a job is created"""

    pass


class BackpressureError(AdmissionError):
    """Raised when the queue is too deep to accept new work"""

    pass


class ExecutionError(HashFleetError):
    """Raised when a job cannot be executed"""

    pass


class UnsupportedAlgorithmError(ExecutionError):
    """Raised when no executor exists for the requested algorithm"""

    def __init__(self, algorithm):
        self.algorithm = algorithm
        super().__init__(f"Unsupported algorithm: {algorithm}")


class FleetControllerError(HashFleetError):
    """Raised when the worker fleet could not be resized"""

    pass


class StoreError(HashFleetError):
    """Raised when shared state is missing or unreadable"""

    pass
