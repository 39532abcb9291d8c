"""
                Restaurant Operations

Order lifecycle engine and dashboard analytics for a dine-in and
delivery restaurant: placement, pricing, status transitions,
cancellation, merging of near-duplicate orders, and the revenue
metrics derived from completed orders.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
