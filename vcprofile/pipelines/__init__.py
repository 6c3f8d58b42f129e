"""Pipelines for profile building, profile validation, and batch runs.

Builder and validator are pure over their inputs; the batch driver is the only
step that talks to a store.
"""
