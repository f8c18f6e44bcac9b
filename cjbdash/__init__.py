"""
cjbdash package
===============

Incident dashboard engine for the CJB security department.

- Row normalization (spreadsheet row -> Incident) is in `cjbdash/normalize.py`.
- The store with dropdown filters and cross-filters is in `cjbdash/engine.py`.
- Chart/KPI aggregations are in `cjbdash/aggregate.py`.
- The interactive console is in `cjbdash/cli.py`.
"""

__version__ = '0.3.0'
