"""Shared RL plumbing on top of gymkit.

Environment-agnostic rollouts and the Gymnasium bridge. Environment
definitions live in gymkit; this library only drives them.
"""
