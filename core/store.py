"""
In-memory wizard state shared by the two wizard steps.

State is an immutable snapshot; every change goes through WizardStore.dispatch(),
which runs one pure transition per action. Last write wins.
"""
import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from core.field_schema import FieldDescriptor, FormValueMap, TypedValue
from core.start_form import StartFormData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessHandle:
    process_instance_id: str
    task_id: Optional[str] = None


class WizardStep(str, Enum):
    START = "calculator"
    DETAILS = "details"
    RESULT = "results"


@dataclass(frozen=True)
class WizardState:
    step: WizardStep = WizardStep.START

    start_form: StartFormData = field(default_factory=StartFormData)
    start_errors: Dict[str, str] = field(default_factory=dict)
    start_touched: FrozenSet[str] = frozenset()

    required_fields: List[FieldDescriptor] = field(default_factory=list)
    form_values: Optional[FormValueMap] = None
    processed_values: Optional[Dict[str, TypedValue]] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    touched: FrozenSet[str] = frozenset()

    process_handle: Optional[ProcessHandle] = None
    task_initiated: bool = False
    calculation_count: int = 0
    result: Optional[Dict[str, Any]] = None
    show_result: bool = False

    starting: bool = False
    submitting: bool = False
    start_error: Optional[str] = None
    submit_error: Optional[str] = None


class ActionType(str, Enum):
    SET_STEP = "set_step"
    SET_START_FORM = "set_start_form"
    TOUCH_START_FIELDS = "touch_start_fields"
    SET_START_ERRORS = "set_start_errors"
    START_REQUESTED = "start_requested"
    PROCESS_STARTED = "process_started"
    START_FAILED = "start_failed"
    SET_FORM_VALUE = "set_form_value"
    SET_FIELD_ERROR = "set_field_error"
    SET_FIELD_ERRORS = "set_field_errors"
    TOUCH_FIELDS = "touch_fields"
    SUBMIT_REQUESTED = "submit_requested"
    CALCULATION_COMPLETED = "calculation_completed"
    SUBMIT_FAILED = "submit_failed"
    CLEAR_ERRORS = "clear_errors"
    CLEAR_FORM_VALUES = "clear_form_values"
    CLOSE_RESULT = "close_result"
    CANCEL = "cancel"
    START_NEW = "start_new"
    RESET = "reset"


@dataclass(frozen=True)
class Action:
    type: ActionType
    payload: Any = None


def _set_step(state: WizardState, step: WizardStep) -> WizardState:
    return replace(state, step=WizardStep(step))


def _set_start_form(state: WizardState, form: StartFormData) -> WizardState:
    return replace(state, start_form=form)


def _touch_start_fields(state: WizardState, names) -> WizardState:
    return replace(state, start_touched=state.start_touched | frozenset(names))


def _set_start_errors(state: WizardState, errors: Dict[str, str]) -> WizardState:
    return replace(state, start_errors=dict(errors))


def _start_requested(state: WizardState, _) -> WizardState:
    return replace(state, starting=True, start_error=None)


def _process_started(state: WizardState, payload: Dict[str, Any]) -> WizardState:
    # A new task brings a new field-set; anything from the previous one goes
    return replace(
        state,
        step=WizardStep.DETAILS,
        starting=False,
        task_initiated=True,
        process_handle=payload["handle"],
        required_fields=list(payload["fields"]),
        field_errors={},
        touched=frozenset(),
        start_touched=frozenset(),
        start_errors={},
    )


def _start_failed(state: WizardState, message: str) -> WizardState:
    return replace(state, starting=False, start_error=message)


def _set_form_value(state: WizardState, payload) -> WizardState:
    field_id, value = payload
    values = dict(state.form_values or {})
    values[field_id] = value
    return replace(state, form_values=values, submit_error=None)


def _set_field_error(state: WizardState, payload) -> WizardState:
    field_id, error = payload
    errors = dict(state.field_errors)
    if error:
        errors[field_id] = error
    else:
        errors.pop(field_id, None)
    return replace(state, field_errors=errors)


def _set_field_errors(state: WizardState, errors: Dict[str, str]) -> WizardState:
    return replace(state, field_errors=dict(errors))


def _touch_fields(state: WizardState, field_ids) -> WizardState:
    return replace(state, touched=state.touched | frozenset(field_ids))


def _submit_requested(state: WizardState, _) -> WizardState:
    return replace(state, submitting=True, submit_error=None)


def _calculation_completed(state: WizardState, payload: Dict[str, Any]) -> WizardState:
    return replace(
        state,
        step=WizardStep.RESULT,
        submitting=False,
        result=payload["result"],
        processed_values=payload.get("processed"),
        task_initiated=False,
        calculation_count=state.calculation_count + 1,
        show_result=True,
        form_values=None,
    )


def _submit_failed(state: WizardState, message: str) -> WizardState:
    # Raw values are kept so the form stays editable
    return replace(state, submitting=False, submit_error=message)


def _clear_errors(state: WizardState, _) -> WizardState:
    return replace(state, submit_error=None, field_errors={}, touched=frozenset())


def _clear_form_values(state: WizardState, _) -> WizardState:
    return replace(state, form_values=None)


def _close_result(state: WizardState, _) -> WizardState:
    return replace(state, show_result=False, result=None)


def _cancel(state: WizardState, _) -> WizardState:
    # Leaves the start form as entered so the user can adjust and start again
    return replace(
        state,
        step=WizardStep.START,
        required_fields=[],
        form_values=None,
        field_errors={},
        touched=frozenset(),
        process_handle=None,
        task_initiated=False,
        calculation_count=0,
        submit_error=None,
    )


def _start_new(state: WizardState, _) -> WizardState:
    return replace(
        state,
        step=WizardStep.START,
        start_form=StartFormData(),
        start_errors={},
        start_touched=frozenset(),
        required_fields=[],
        form_values=None,
        field_errors={},
        touched=frozenset(),
        process_handle=None,
        task_initiated=False,
        calculation_count=0,
    )


def _reset(state: WizardState, _) -> WizardState:
    return WizardState()


_TRANSITIONS: Dict[ActionType, Callable[[WizardState, Any], WizardState]] = {
    ActionType.SET_STEP: _set_step,
    ActionType.SET_START_FORM: _set_start_form,
    ActionType.TOUCH_START_FIELDS: _touch_start_fields,
    ActionType.SET_START_ERRORS: _set_start_errors,
    ActionType.START_REQUESTED: _start_requested,
    ActionType.PROCESS_STARTED: _process_started,
    ActionType.START_FAILED: _start_failed,
    ActionType.SET_FORM_VALUE: _set_form_value,
    ActionType.SET_FIELD_ERROR: _set_field_error,
    ActionType.SET_FIELD_ERRORS: _set_field_errors,
    ActionType.TOUCH_FIELDS: _touch_fields,
    ActionType.SUBMIT_REQUESTED: _submit_requested,
    ActionType.CALCULATION_COMPLETED: _calculation_completed,
    ActionType.SUBMIT_FAILED: _submit_failed,
    ActionType.CLEAR_ERRORS: _clear_errors,
    ActionType.CLEAR_FORM_VALUES: _clear_form_values,
    ActionType.CLOSE_RESULT: _close_result,
    ActionType.CANCEL: _cancel,
    ActionType.START_NEW: _start_new,
    ActionType.RESET: _reset,
}


def reduce(state: WizardState, action: Action) -> WizardState:
    return _TRANSITIONS[action.type](state, action.payload)


class WizardStore:
    """Single owner of the wizard state; listeners are told about every change."""

    def __init__(self, initial: Optional[WizardState] = None):
        self._state = initial or WizardState()
        self._lock = threading.Lock()
        self._listeners: List[Callable[[WizardState], None]] = []

    @property
    def state(self) -> WizardState:
        return self._state

    def dispatch(self, action: Action) -> WizardState:
        with self._lock:
            self._state = reduce(self._state, action)
            state = self._state
        logger.debug(f"Store action: {action.type.value}")
        for listener in list(self._listeners):
            listener(state)
        return state

    def subscribe(self, listener: Callable[[WizardState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start_new(self) -> WizardState:
        return self.dispatch(Action(ActionType.START_NEW))

    def reset(self) -> WizardState:
        return self.dispatch(Action(ActionType.RESET))
