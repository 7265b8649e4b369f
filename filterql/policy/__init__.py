"""filterQL policy layer: field allow/deny lists, field rules, limits, default sort."""
from filterql.policy.engine import FieldKind, FieldRule, FilterPolicy, PolicyEngine

__all__ = ["FieldKind", "FieldRule", "FilterPolicy", "PolicyEngine"]
