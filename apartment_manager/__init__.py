"""
Apartment Manager - Source Package

Keeps apartment occupancy records (owner, resident, "owner is resident")
and the user accounts that may log in, backed by local SQLite files,
with bulk import/export to CSV and Excel workbooks.

DESIGN PRINCIPLES:
1. The "owner is resident" flag is always derived, never typed in
2. A bulk import either lands completely or not at all
3. Fail early, fail visibly
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Apartment Manager Team"
