"""Applicant records, stores and database connectivity."""
