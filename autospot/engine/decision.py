"""
Instance lifecycle decision engine.

Maps the observed lifecycle state of an instance plus its eligibility
predicates to a single action. The engine holds no state, so deciding
twice on the same inputs yields the same action.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Action(str, Enum):
    LAUNCH_SPOT_REPLACEMENT = "launch_spot_replacement"
    SWAP_WITH_GROUP_MEMBER = "swap_with_group_member"
    NO_ACTION = "no_action"


class EligibilityPredicates(ABC):
    """Read-only eligibility checks consulted by the decision engine."""

    @abstractmethod
    def belongs_to_enabled_asg(self) -> bool:
        pass

    @abstractmethod
    def should_be_replaced_with_spot(self) -> bool:
        pass

    @abstractmethod
    def is_unattached_spot_instance_launched_for_an_enabled_asg(self) -> bool:
        pass


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str


def decide(state: str, predicates: EligibilityPredicates) -> Decision:
    """Choose the action for an instance observed in the given state.
    
    Args:
        state: Observed lifecycle state, e.g. 'pending' or 'running'
        predicates: Eligibility checks for the instance
        
    Returns:
        Decision carrying the action and a human readable reason
    """
    if state == 'pending':
        if not predicates.belongs_to_enabled_asg():
            return Decision(Action.NO_ACTION, "pending but not part of an enabled group")
        if not predicates.should_be_replaced_with_spot():
            return Decision(Action.NO_ACTION, "pending but should not be replaced with spot")
        return Decision(
            Action.LAUNCH_SPOT_REPLACEMENT,
            "pending, belongs to an enabled group and should be replaced with spot",
        )
    
    if state == 'running':
        if not predicates.is_unattached_spot_instance_launched_for_an_enabled_asg():
            return Decision(Action.NO_ACTION, "running but not an unattached spot instance launched for an enabled group")
        return Decision(
            Action.SWAP_WITH_GROUP_MEMBER,
            "running spot instance not yet attached to its group",
        )
    
    return Decision(Action.NO_ACTION, f"no decision for state '{state}'")
