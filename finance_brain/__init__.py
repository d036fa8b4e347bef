"""
Finance Brain - Source Package

Personal finance tracking on top of a schema-less document store.
Accounts, holdings and transactions live as flat property maps on
blocks; every summary is computed fresh by scanning those blocks.

DESIGN PRINCIPLES:
1. The host store is injected, never reached globally
2. Reading is lenient: bad numbers become 0, bad dates become today
3. Scans are best-effort and never raise into the aggregator
4. Summaries are all-or-nothing: a failure yields zeros, not partial data
"""

__version__ = "1.0.0"
__author__ = "Finance Brain Team"
