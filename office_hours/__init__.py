"""Office Hours mentor matching API"""

__version__ = "1.0.0"
