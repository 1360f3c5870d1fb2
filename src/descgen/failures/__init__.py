"""Failure type synthesis for ``*failures.proto`` files."""

from .synthesizer import FailureSpec, is_valid_failures_file, synthesize_failure, synthesize_failures

__all__ = ["FailureSpec", "is_valid_failures_file", "synthesize_failure", "synthesize_failures"]
