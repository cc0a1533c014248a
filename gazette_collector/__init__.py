"""
Gazette Collector - legislative text acquisition from the official gazette.

This package provides functionality to:
1. Find bill, law and amendment texts in gazette issues
2. Download each issue PDF once across concurrent workers
3. Cut the operative part out of the raw texts
4. Measure how much each amendment changed the text

Based on the public gazette archive of the Colombian Congress.
"""

__version__ = "0.1.0"
