"""University Course Management System backend"""

__version__ = "1.0.0"
