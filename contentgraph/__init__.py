"""
contentgraph - referential integrity for a Content / Feature / Image document graph.
"""

from contentgraph.config import Config
from contentgraph.services.content_graph import ContentGraph

__version__ = "0.1.0"

__all__ = ["Config", "ContentGraph", "__version__"]
