"""Intake, ranking, export and orchestration services."""
