"""releasehook - GitHub release webhooks to workflows and notifications."""
__version__ = "0.1.0"
