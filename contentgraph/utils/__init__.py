"""Utility modules for contentgraph."""

from contentgraph.utils.exceptions import (
    BlobStoreError,
    ConfigurationError,
    ContentGraphError,
    FanOutError,
    FanOutTimeoutError,
    NotFoundError,
    PartialCascadeError,
    PersistenceError,
    StoreError,
    ValidationError,
)
from contentgraph.utils.id_generator import (
    generate_content_id,
    generate_feature_id,
    generate_image_id,
)
from contentgraph.utils.locks import KeyedLock
from contentgraph.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_content_id",
    "generate_feature_id",
    "generate_image_id",
    # Concurrency
    "KeyedLock",
    # Exceptions
    "ContentGraphError",
    "StoreError",
    "PersistenceError",
    "BlobStoreError",
    "NotFoundError",
    "ValidationError",
    "ConfigurationError",
    "FanOutError",
    "FanOutTimeoutError",
    "PartialCascadeError",
]
