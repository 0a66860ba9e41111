"""
Two-step benefit calculator wizard.

Step one collects member/plan details and starts a workflow process; step two
collects the fields the engine asked for and completes the task. All state
lives in the WizardStore; this controller only decides which actions to
dispatch and when to call the API services.
"""
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Optional

from loguru import logger

from client.base_api import ApiError, get_error_message
from client.complete_service import BenefitCalculatorCompleteService
from client.notifier import LoggingNotifier, Notifier, show_error, show_warning
from client.start_service import BenefitCalculatorStartService
from core.data_formatter import calculation_data
from core.field_schema import TypedValue, find_field, parse_field_descriptors
from core.field_validator import ValidationMessages, is_form_valid, validate_field, validate_form
from core.form_processor import prepare_submission_data, process_form_values
from core.start_form import (
    build_start_request,
    validate_start_field,
    validate_start_form,
    visible_start_fields,
)
from core.store import Action, ActionType, ProcessHandle, WizardState, WizardStep, WizardStore

START_FAILED_MESSAGE = "Failed to start process. Please try again."
MISSING_PROCESS_MESSAGE = "Process Instance ID is missing."
PENDING_SUBPROCESS_MARKER = "subprocess may still be processing"


class BenefitCalculatorWizard:
    def __init__(
        self,
        store: WizardStore,
        start_service: BenefitCalculatorStartService,
        complete_service: BenefitCalculatorCompleteService,
        notifier: Optional[Notifier] = None,
        today: Optional[date] = None,
    ):
        self.store = store
        self.start_service = start_service
        self.complete_service = complete_service
        self.notifier = notifier or LoggingNotifier()
        self.today = today

    @property
    def state(self) -> WizardState:
        return self.store.state

    def _dispatch(self, action_type: ActionType, payload: Any = None) -> WizardState:
        return self.store.dispatch(Action(action_type, payload))

    # ---- start step ----

    def update_start_field(self, name: str, value: Any) -> None:
        form = replace(self.state.start_form, **{name: value})
        self._dispatch(ActionType.SET_START_FORM, form)
        if name in self.state.start_touched:
            self._revalidate_start_field(name)

    def blur_start_field(self, name: str) -> None:
        self._dispatch(ActionType.TOUCH_START_FIELDS, [name])
        self._revalidate_start_field(name)

    def _revalidate_start_field(self, name: str) -> None:
        errors = dict(self.state.start_errors)
        error = validate_start_field(self.state.start_form, name, self.today)
        if error:
            errors[name] = error
        else:
            errors.pop(name, None)
        self._dispatch(ActionType.SET_START_ERRORS, errors)

    async def start(self) -> bool:
        """Validate the start form and start a process. Returns True when step two is ready."""
        if self.state.starting:
            return False

        self._dispatch(ActionType.TOUCH_START_FIELDS, visible_start_fields())
        form = self.state.start_form
        errors = validate_start_form(form, self.today)
        self._dispatch(ActionType.SET_START_ERRORS, errors)
        if errors:
            logger.debug(f"Start form has {len(errors)} error(s)")
            return False

        self._dispatch(ActionType.START_REQUESTED)
        try:
            response = await self.start_service.start_process(build_start_request(form))
            fields = parse_field_descriptors(response.get("requiredFields") or [])
            process_instance_id = response.get("processInstanceId")
            handle = ProcessHandle(process_instance_id) if process_instance_id else None
            self._dispatch(ActionType.PROCESS_STARTED, {"handle": handle, "fields": fields})
        except Exception as e:
            message = get_error_message(e) if isinstance(e, ApiError) else START_FAILED_MESSAGE
            logger.error(f"Failed to start process: {e}")
            self._dispatch(ActionType.START_FAILED, message)
            show_error(self.notifier, message, "Start failed")
            return False
        finally:
            # Cancelled mid-request
            if self.state.starting:
                self._dispatch(ActionType.START_FAILED, START_FAILED_MESSAGE)

        logger.info(f"Wizard moved to details for process {process_instance_id} ({len(fields)} fields)")
        return True

    # ---- details step ----

    def change_value(self, field_id: str, value: TypedValue) -> None:
        self._dispatch(ActionType.SET_FORM_VALUE, (field_id, value))
        field = find_field(self.state.required_fields, field_id)
        if field is not None:
            self._dispatch(ActionType.SET_FIELD_ERROR, (field_id, validate_field(field, value)))

    def blur(self, field_id: str) -> None:
        self._dispatch(ActionType.TOUCH_FIELDS, [field_id])
        field = find_field(self.state.required_fields, field_id)
        if field is not None:
            value = (self.state.form_values or {}).get(field_id)
            self._dispatch(ActionType.SET_FIELD_ERROR, (field_id, validate_field(field, value)))

    def visible_errors(self) -> Dict[str, str]:
        """Errors for fields the user has already touched."""
        state = self.state
        return {k: v for k, v in state.field_errors.items() if k in state.touched}

    @property
    def can_submit(self) -> bool:
        state = self.state
        return not state.submitting and is_form_valid(state.required_fields, state.form_values or {})

    async def submit(self) -> Optional[Dict[str, Any]]:
        """
        Complete the current task with the entered values.

        Returns the calculation result, or None when validation failed, a
        submission is already in flight, or the request failed (the store's
        submit_error then holds the message and the entered values are kept).
        """
        state = self.state
        if state.submitting:
            logger.debug("Submission already in flight, ignoring")
            return None

        fields = state.required_fields
        values = state.form_values or {}
        self._dispatch(ActionType.TOUCH_FIELDS, [f.id for f in fields])
        errors = validate_form(fields, values)
        self._dispatch(ActionType.SET_FIELD_ERRORS, errors)
        if errors:
            return None

        if state.process_handle is None:
            self._dispatch(ActionType.SUBMIT_FAILED, MISSING_PROCESS_MESSAGE)
            return None

        self._dispatch(ActionType.SUBMIT_REQUESTED)
        try:
            processed = process_form_values(fields, values)
            payload = prepare_submission_data(state.process_handle.process_instance_id, fields, processed)
            result = await self.complete_service.submit_calculation(payload)
            self._dispatch(ActionType.CALCULATION_COMPLETED, {"result": result, "processed": processed})
        except Exception as e:
            message = get_error_message(e) if isinstance(e, ApiError) else ValidationMessages.NETWORK_ERROR
            logger.error(f"Error submitting calculation: {e}")
            self._dispatch(ActionType.SUBMIT_FAILED, ValidationMessages.NETWORK_ERROR)
            show_error(self.notifier, message, "Calculation failed")
            return None
        finally:
            if self.state.submitting:
                self._dispatch(ActionType.SUBMIT_FAILED, ValidationMessages.NETWORK_ERROR)

        result_message = calculation_data(result).get("message") or ""
        if PENDING_SUBPROCESS_MARKER in result_message:
            show_warning(self.notifier, result_message, "Calculation incomplete")
        return result

    def retry(self) -> None:
        self._dispatch(ActionType.CLEAR_ERRORS)

    # ---- navigation ----

    def back(self) -> None:
        """One step back; entered values stay in the store."""
        step = self.state.step
        if step == WizardStep.RESULT:
            self._dispatch(ActionType.SET_STEP, WizardStep.DETAILS)
        elif step == WizardStep.DETAILS:
            self._dispatch(ActionType.SET_STEP, WizardStep.START)

    def close_result(self) -> None:
        self._dispatch(ActionType.CLOSE_RESULT)

    def cancel(self) -> None:
        self._dispatch(ActionType.CANCEL)

    def start_new(self) -> None:
        self.store.start_new()

    def reset(self) -> None:
        self.store.reset()
