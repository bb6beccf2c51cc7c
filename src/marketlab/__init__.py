"""Market Lab - a hypothesis-testing market simulation.

Players read a market situation, test hypotheses about sectors on synthetic
data, and trade a virtual portfolio on what they conclude.
"""

__version__ = "0.1.0"
