"""Core domain package for slackportal.

Core contains correlation, normalization, and dispatch logic without any
Slack transport code, keeping the mirroring rules portable and testable.
"""
