"""
Booking wizard steps, events and the transition table between them.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from utils.exceptions import InvalidTransitionError


class WizardStep(str, Enum):
    """Steps of the booking wizard."""

    CHOOSE_DATE = "choose_date"
    CHOOSE_TIME = "choose_time"
    ENTER_NAME = "enter_name"
    CONFIRM = "confirm"


class WizardEvent(str, Enum):
    """User actions that move the wizard forward."""

    DATE_CHOSEN = "date_chosen"
    TIME_CHOSEN = "time_chosen"
    BACK_TO_DATE = "back_to_date"
    NAME_ENTERED = "name_entered"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


# None as a target means the wizard is finished and the session is dropped
TRANSITIONS: Dict[Tuple[WizardStep, WizardEvent], Optional[WizardStep]] = {
    (WizardStep.CHOOSE_DATE, WizardEvent.DATE_CHOSEN): WizardStep.CHOOSE_TIME,
    (WizardStep.CHOOSE_TIME, WizardEvent.TIME_CHOSEN): WizardStep.ENTER_NAME,
    (WizardStep.CHOOSE_TIME, WizardEvent.BACK_TO_DATE): WizardStep.CHOOSE_DATE,
    (WizardStep.ENTER_NAME, WizardEvent.NAME_ENTERED): WizardStep.CONFIRM,
    (WizardStep.CONFIRM, WizardEvent.CONFIRMED): None,
    (WizardStep.CONFIRM, WizardEvent.DECLINED): None,
}


def next_step(step: WizardStep, event: WizardEvent) -> Optional[WizardStep]:
    """
    Look up the step that follows an event.

    Raises:
        InvalidTransitionError: If the event is not accepted in this step
    """
    try:
        return TRANSITIONS[(step, event)]
    except KeyError:
        raise InvalidTransitionError(step.value, event.value) from None
