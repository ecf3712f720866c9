"""Slip Ledger.

Personal finance helpers built around bank transfer slips: Tesseract
recognition with OpenCV preprocessing, a heuristic Thai/English slip
text parser, envelope-budget jars, and rule-based note categorization.
"""

__version__ = "1.0.0"
