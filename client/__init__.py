from .base_api import ApiError, ApiRequestError, ApiResponseError, NetworkError
from .start_service import BenefitCalculatorStartService
from .complete_service import BenefitCalculatorCompleteService, classify_response
from .notifier import Alert, AlertType, CallbackNotifier, LoggingNotifier, Notifier
from .wizard import BenefitCalculatorWizard

__all__ = [
    'ApiError',
    'ApiRequestError',
    'ApiResponseError',
    'NetworkError',
    'BenefitCalculatorStartService',
    'BenefitCalculatorCompleteService',
    'classify_response',
    'Alert',
    'AlertType',
    'CallbackNotifier',
    'LoggingNotifier',
    'Notifier',
    'BenefitCalculatorWizard'
]
