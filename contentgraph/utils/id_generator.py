"""
ID generation utilities for contentgraph.

Provides consistent ID generation for all entity types:
- Contents: cnt_xxx
- Features: ftr_xxx
- Images: img_xxx
"""

from uuid import uuid4


def generate_content_id() -> str:
    """
    Generate unique Content ID.

    Returns:
        ID in format "cnt_xxx" where xxx is 12 hex characters
    """
    return f"cnt_{uuid4().hex[:12]}"


def generate_feature_id() -> str:
    """
    Generate unique Feature ID.

    Returns:
        ID in format "ftr_xxx" where xxx is 12 hex characters
    """
    return f"ftr_{uuid4().hex[:12]}"


def generate_image_id() -> str:
    """
    Generate unique Image ID.

    Returns:
        ID in format "img_xxx" where xxx is 12 hex characters
    """
    return f"img_{uuid4().hex[:12]}"
