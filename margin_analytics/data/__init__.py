"""
Data Generation Module
"""
from .generators import SuperstoreGenerator, generate_sales_file

__all__ = [
    "SuperstoreGenerator",
    "generate_sales_file",
]
