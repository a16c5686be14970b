"""Trade Decision & Execution Core.

Two coupled halves:
  sizing/   : bankroll-aware dynamic Kelly position sizing.
  routing/  : smart order routing across prediction-market and crypto venues.

`decision.TradeDecisionCore` composes them (size first, then route).
"""

__version__ = "0.1.0"
