"""Moderation package integration helpers exposed to the application."""

from onlyone.moderation.domain.orchestrator import Allowed, Blocked, ModerationOrchestrator, ModerationVerdict

__all__ = ["Allowed", "Blocked", "ModerationOrchestrator", "ModerationVerdict"]
