"""
WMS Inventory Allocation & Movement Engine
"""

__version__ = "1.0.0"
