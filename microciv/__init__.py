"""
MicroCiv - turn-based civilization-building game.
The engine lives in microciv.engine; microciv.api serves it to the browser UI.
"""

__version__ = "1.0.0"
