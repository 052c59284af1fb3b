"""
Voting node package initializer

Keep this module lightweight. Do not import FastAPI or storage backends here,
so the runtime can be used without booting the HTTP app.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
