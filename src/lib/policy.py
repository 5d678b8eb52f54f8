"""
Update-mode policy

Decides whether a located directive is evaluated on a given pass.
"""

from ..models.markers import UpdateMode


def query_shouldSkip(update_mode: UpdateMode, is_manual_trigger: bool, is_already_serialized: bool) -> bool:
    """
    Decide whether a directive is skipped on this pass.

    Args:
        update_mode: The directive's update mode
        is_manual_trigger: The pass was explicitly started by the user
        is_already_serialized: A result already exists for the directive

    Returns:
        True to skip the directive, False to evaluate it

    Truth table:
        manual trigger            -> never skip
        MANUAL                    -> skip
        ONCE with a result        -> skip
        anything else             -> evaluate

    ONCE_AND_EJECT never has a result to find: its first successful
    serialization removes the directive altogether.
    """
    if is_manual_trigger:
        return False
    if update_mode is UpdateMode.MANUAL:
        return True
    if update_mode is UpdateMode.ONCE and is_already_serialized:
        return True
    return False
