# Overview: Utility functions for action lookups and validation.

from .definitions import ACTION_DEFINITIONS
from .roles import Role


_BY_CODE = {action[0]: action for action in ACTION_DEFINITIONS}


def get_all_action_codes():
    """Get list of all action codes."""
    return [action[0] for action in ACTION_DEFINITIONS]


def get_action_definition(code):
    """Get full definition for an action code."""
    action = _BY_CODE.get(code)
    if action is None:
        return None
    return {
        "code": action[0],
        "name": action[1],
        "description": action[2],
        "category": action[3],
        "min_role": action[4].value,
    }


def minimum_role(code) -> Role:
    """Minimum role for an action; raises ValueError for unknown codes."""
    action = _BY_CODE.get(code)
    if action is None:
        raise ValueError(f"Unknown action: {code}")
    return action[4]


def validate_action_code(code):
    """Check if an action code is valid."""
    return code in _BY_CODE


def actions_for_role(role: Role) -> list[str]:
    """Action codes a role satisfies by the minimum-role table alone."""
    return [action[0] for action in ACTION_DEFINITIONS if role.at_least(action[4])]
