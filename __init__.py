"""Family Finance Tracker package.

This package contains the monthly dashboard engine of a family finance
app and the services around it.  See ``dashboard.py`` for the summary
engine and ``server.py`` for the HTTP entry point.
"""
