"""Training-cohort records, Codeforces standings and Elo-style ratings, kept in memory."""

__version__ = "0.1.0"