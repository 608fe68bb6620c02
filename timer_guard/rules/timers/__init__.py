"""
Timer rules for detecting misuse of paired timing calls.

Rules in this module:
- TIMERS.CONSOLE_TIME_PAIRS - Detects time()/timeEnd() calls without a counterpart
"""

# Rules will be auto-discovered from this directory
