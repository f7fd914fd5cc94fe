"""AcoustID / Chromaprint adapters."""

from __future__ import annotations

from .client import AcoustIdAPIError, AcoustIdClient
from .extractor import ChromaprintExtractor

__all__ = ["AcoustIdAPIError", "AcoustIdClient", "ChromaprintExtractor"]
