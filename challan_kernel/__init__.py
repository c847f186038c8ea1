"""
Challan Kernel

Domain core of the delivery-challan toolkit:
- Catalog value objects (procedures, items, instruments, locations)
- Saved DC records with an append-only history
- The guarded DC lifecycle workflow
- Working-DC builder and tracker queries
"""

__version__ = "0.1.0"
