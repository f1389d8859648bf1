from __future__ import annotations

from .retry import RetryPolicy, retry

__all__ = ["RetryPolicy", "retry"]
