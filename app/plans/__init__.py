"""Plans module.

Subpackages:
- fixed_points: sync of a plan's schedule-anchored commitments with the plans API
"""
