"""Risk-ordered pull request review from unified diffs."""

__version__ = "0.1.0"
