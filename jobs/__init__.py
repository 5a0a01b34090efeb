"""
Background jobs.

Scheduled scan and pool discovery cycles plus the process entry point.
"""
