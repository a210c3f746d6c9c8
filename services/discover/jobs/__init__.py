"""Batch jobs for the discover feed."""
