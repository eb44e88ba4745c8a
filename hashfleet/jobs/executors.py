"""
Hash algorithm executors.

Only sha256 has an executor. bcrypt is accepted at submission but every
bcrypt job fails at execution time with ``Unsupported algorithm: bcrypt``;
see DESIGN.md for why this is kept as-is.
"""

import hashlib
from typing import Callable, Dict

from ..core.exceptions import UnsupportedAlgorithmError
from .models import Algorithm


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


EXECUTORS: Dict[str, Callable[[str], str]] = {
    Algorithm.SHA256.value: sha256_hex,
}


def is_executable(algorithm: str) -> bool:
    return algorithm in EXECUTORS


def execute(algorithm: str, text: str) -> str:
    """
    Hash ``text`` with ``algorithm``.

    Raises:
        UnsupportedAlgorithmError: no executor is registered for the algorithm
    """
    executor = EXECUTORS.get(algorithm)
    if executor is None:
        raise UnsupportedAlgorithmError(algorithm)
    return executor(text)
