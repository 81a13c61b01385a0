# Overview: Utility functions for role lookups and validation.

from .roles import ROLE_DEFINITIONS, ALL_ROLES


def get_all_role_codes():
    """Get list of all role codes, in definition order."""
    return [role[0] for role in ROLE_DEFINITIONS]


def get_role_definition(code):
    """Get full definition for a role code."""
    for role in ROLE_DEFINITIONS:
        if role[0] == code:
            return {
                "code": role[0],
                "name": role[1],
                "description": role[2],
            }
    return None


def validate_role_code(code):
    """Check if a role code is valid."""
    return code in ALL_ROLES

