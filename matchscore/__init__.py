"""match-score: candidate/job match scoring and calibration engine."""

__version__ = "0.1.0"
