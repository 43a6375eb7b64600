"""Compensation scoring for completed rounds.

Turns aggregated peer scores and contributor agreements into a fiat /
token-points split:
  scores → final score → SAM (PAR) → total compensation → fiat + TP
"""
