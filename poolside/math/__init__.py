"""Mathematical utilities for pool pricing.

This package provides mathematical primitives for weighted pool calculations:
- Bfp: 18-decimal fixed-point arithmetic (Balancer-style)
"""

from poolside.math.fixed_point import Bfp

__all__ = ["Bfp"]
