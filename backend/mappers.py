"""Map raw engine variables onto the member and subprocess result shapes"""
import json
from typing import Any, Dict, List

MEMBER_DATA_FIELDS: List[str] = [
    "firstName", "lastName", "dateOfBirth", "dateJoinedFund", "memberId",
    "effectiveDate", "calculationDate", "benefitClass", "planNumber", "paymentType",
    "paymentTypeDesc", "maxBenMult", "othMult3", "othMult5", "sgMaxContBase",
    "mbrSGM", "SGM", "fixedSpecSGMult", "accRetMult_PriorDt", "finalAvSal",
    "discFactA", "dateBenAccr", "accBenMult", "accRetMult", "addtnlSG",
    "addtnlSGAcct", "addtnlVolDeath", "compAddtnlAcct", "cpiVal1", "cpiVal2",
    "dbOffsetAcct", "deathMult", "discFactB", "discFactC", "discFactD",
    "empNotnlAcct", "famLawAcctVal", "fas_920630", "fas_CalcDate", "FutSrvc",
    "interest", "mbrAcct", "mbrContAcct", "mbrEquitShare", "mbrVolAcct",
    "notnlInitBal", "notnlAcct", "notnlSgAcct", "notnlSgBal", "othBen1",
    "othBen2", "othMult1", "othMult2", "othMult4", "oteAddtnl",
    "rolloverAcct", "salary", "sgAcct", "srchrgAcct", "vestFactA",
    "sgNotionalAccount", "memberContributions", "finalAvSalForMrb2",
]

SUB_PROCESS_FIELDS: List[str] = [
    "pymntAmt", "minBenCheck", "maxBenCheck",
    "totalVolAcctsAdd", "totalVolAcctsSub", "totalVolAcctsNet",
]

# Engine bookkeeping, not member data
INTERNAL_VARIABLES = {"requiredFields"}


def to_variable_string(value: Any) -> str:
    """Engine value as display text; falsy values become ''."""
    if not value:
        return ""
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def get_string_value(variables: Dict[str, Any], key: str) -> str:
    return to_variable_string(variables.get(key))


def map_to_member_data(variables: Dict[str, Any]) -> Dict[str, str]:
    """Every known member field (blank when missing) plus any other variable the engine set."""
    member_data = {key: get_string_value(variables, key) for key in MEMBER_DATA_FIELDS}
    for key, value in variables.items():
        if key not in member_data and key not in INTERNAL_VARIABLES:
            member_data[key] = to_variable_string(value)
    return member_data


def map_to_sub_process_data(variables: Dict[str, Any]) -> Dict[str, str]:
    return {key: get_string_value(variables, key) for key in SUB_PROCESS_FIELDS}


def has_sub_process_data(data: Dict[str, str]) -> bool:
    return any(data.get(key) for key in SUB_PROCESS_FIELDS)
