"""MS365 Graph gateway: authenticated Graph requests as tool-protocol envelopes."""

from .config import GraphSettings
from .adapters.ms365 import GraphClient, GraphRequestOptions

__version__ = "0.1.0"

__all__ = ["GraphClient", "GraphRequestOptions", "GraphSettings", "__version__"]
