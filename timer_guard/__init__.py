"""timer-guard - static checks for unmatched console.time()/console.timeEnd() calls."""

__version__ = "0.1.0"
