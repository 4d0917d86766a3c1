"""
Validators Module - Message batch validation.
"""

from .batch_validator import (
    Message,
    BatchValidator,
    validate_batch,
    MalformedBatchError
)

__all__ = [
    'Message',
    'BatchValidator',
    'validate_batch',
    'MalformedBatchError',
]
