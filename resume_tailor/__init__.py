"""Tailor a LaTeX resume and cover letter to a job posting via an AI CLI."""

__version__ = "0.1.0"
