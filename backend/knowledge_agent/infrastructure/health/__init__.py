from .readiness_checker import ComponentStatus, ReadinessChecker

__all__ = ["ComponentStatus", "ReadinessChecker"]
