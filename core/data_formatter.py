import logging
import re
from typing import Any, Dict, List, NamedTuple, Optional

from core.catalog import calculate_age
from core.field_schema import FieldDescriptor
from core.start_form import to_date

logger = logging.getLogger(__name__)


class CalculationFactor(NamedTuple):
    key: str
    label: str
    value: Any


class ResultRow(NamedTuple):
    section: str
    label: str
    value: str


def calculation_data(result: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """The assembled result, unwrapped from the {success, data} envelope when present."""
    if not result:
        return {}
    data = result.get("data")
    if isinstance(data, dict):
        return data
    return result


class ResultFormatter:
    """Turns an assembled calculation result into display-ready values and rows."""

    IDENTITY_FIELDS = [
        'firstName', 'lastName', 'dateOfBirth', 'dateJoinedFund', 'memberId',
        'effectiveDate', 'calculationDate', 'benefitClass', 'paymentType', 'paymentTypeDesc',
    ]

    SUBPROCESS_LABELS = {
        'pymntAmt': 'Payment Amount',
        'minBenCheck': 'Minimum Check',
        'maxBenCheck': 'Maximum Check',
        'totalVolAcctsAdd': 'Total Voluntary Accounts (additions)',
        'totalVolAcctsSub': 'Total Voluntary Accounts (subtractions)',
        'totalVolAcctsNet': 'Net Value of Voluntary Accounts',
    }

    # Applied in order after camelCase keys are split into words
    LABEL_REPLACEMENTS = [
        (r'\bMult\b', 'Multiple'),
        (r'\bCont\b', 'Contribution'),
        (r'\bAv\b', 'Average'),
        (r'\bSal\b', 'Salary'),
        (r'\bRet\b', 'Retirement'),
        (r'\bPrior Dt\b', 'Prior Date'),
        (r'\bSpec\b', 'Special'),
        (r'\bMbr\b', 'Member'),
        (r'\bDisc\b', 'Discount'),
        (r'\bFact\b', 'Factor'),
        (r'\bOth\b', 'Other'),
        (r'\bPlannumber\b', 'Plan Number'),
    ]

    def format_date(self, value: Optional[str]) -> str:
        if not value:
            return "-"
        parsed = to_date(value)
        if parsed is None:
            logger.debug(f"Leaving unparsable date as-is: {value}")
            return str(value)
        return parsed.strftime("%d/%m/%Y")

    def format_currency(self, value: Any) -> str:
        if value is None or value == "" or value == "0.0":
            return "$0.00"
        try:
            number = float(str(value))
        except ValueError:
            return "$0.00"
        if number != number:
            return "$0.00"
        return f"${number:,.2f}"

    def format_factor_value(self, key: str, value: Any) -> str:
        if "sal" in key.lower():
            return self.format_currency(value)
        if value is None or value == "":
            return "-"
        return str(value)

    def age_label(self, birth_date: Optional[str], effective_date: Optional[str]) -> str:
        birth = to_date(birth_date)
        effective = to_date(effective_date)
        if not birth or not effective:
            return "-"
        return str(calculate_age(birth, effective))

    def format_field_label(self, key: str) -> str:
        label = re.sub(r'([A-Z]+)', r' \1', key).replace('_', ' ')
        label = re.sub(r'\s+', ' ', label).strip()
        label = label[:1].upper() + label[1:]
        for pattern, replacement in self.LABEL_REPLACEMENTS:
            label = re.sub(pattern, replacement, label)
        return label

    def calculation_factors(
        self,
        member_data: Dict[str, Any],
        fields: List[FieldDescriptor],
    ) -> List[CalculationFactor]:
        """
        Non-identity member values worth showing: those the user was asked
        for (matched case-insensitively by field id) plus any plan-number key.
        """
        if not member_data:
            return []

        labels = {f.id.lower(): f.label for f in fields}
        factors = []
        for key, value in member_data.items():
            if key in self.IDENTITY_FIELDS:
                continue
            lower_key = key.lower()
            is_plan_number = "plannumber" in lower_key or "plan_number" in lower_key
            if lower_key in labels or is_plan_number:
                label = labels.get(lower_key) or self.format_field_label(key)
                factors.append(CalculationFactor(key, label, value))
        return factors

    def result_rows(self, result: Dict[str, Any], fields: List[FieldDescriptor]) -> List[ResultRow]:
        """Flat (section, label, value) rows for the PDF/CSV renderers."""
        data = calculation_data(result)
        member = data.get("memberData") or {}
        sub = data.get("subProcessData") or {}

        rows = [
            ResultRow("Member Information", "Name",
                      f"{member.get('firstName', '')} {member.get('lastName', '')}".strip() or "-"),
            ResultRow("Member Information", "Member ID", member.get("memberId") or "-"),
            ResultRow("Member Information", "Date of Birth", self.format_date(member.get("dateOfBirth"))),
            ResultRow("Member Information", "Date Joined Fund", self.format_date(member.get("dateJoinedFund"))),
            ResultRow("Member Information", "Effective Date", self.format_date(member.get("effectiveDate"))),
            ResultRow("Member Information", "Calculation Date", self.format_date(member.get("calculationDate"))),
            ResultRow("Member Information", "Age",
                      self.age_label(member.get("dateOfBirth"), member.get("effectiveDate"))),
            ResultRow("Benefit Details", "Benefit Class", member.get("benefitClass") or "-"),
            ResultRow("Benefit Details", "Payment Type", member.get("paymentTypeDesc") or "-"),
        ]

        for factor in self.calculation_factors(member, fields):
            rows.append(ResultRow("Calculation Factors", factor.label,
                                  self.format_factor_value(factor.key, factor.value)))

        for key, label in self.SUBPROCESS_LABELS.items():
            rows.append(ResultRow("Benefit Calculation Summary", label, self.format_currency(sub.get(key))))

        return rows
