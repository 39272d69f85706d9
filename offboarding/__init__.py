"""Multi-level approval workflows for employee offboarding."""
