"""Admissions merit-list web application."""
