"""
Verdict Model
=============
Advisory false-positive classification attached to a rendered finding.

Only the console uses verdicts; they are never persisted with the finding.
"""
from enum import Enum


class Verdict(str, Enum):
    LIKELY_TRUE_POSITIVE = "likely_true_positive"
    LIKELY_FALSE_POSITIVE = "likely_false_positive"
    UNCERTAIN = "uncertain"
