"""Slack adapters for slackportal.

Adapters translate between Slack payloads and the core ports, so nothing in
core imports slack_sdk.
"""
