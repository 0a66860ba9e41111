# Plan, benefit class and payment type reference data for the start form
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

NO_LIMIT = -1


@dataclass(frozen=True)
class PlanNumber:
    id: str
    value: str


@dataclass(frozen=True)
class BenefitClassRule:
    id: str
    min_age: int
    max_age: int

    def allows(self, age: int) -> bool:
        if self.min_age >= 0 and age < self.min_age:
            return False
        if self.max_age >= 0 and age > self.max_age:
            return False
        return True


@dataclass(frozen=True)
class PaymentType:
    id: str
    value: str
    benefit_classes: Tuple[BenefitClassRule, ...]


BENEFIT_CLASSES: List[str] = ["C", "CHAZ", "CLY", "CUE", "CYAL", "FA", "FB", "ALCAN", "CRA", "BOC-DB"]

PLAN_NUMBERS: List[PlanNumber] = [
    PlanNumber("EQ9004", "Citipower(EQ9004)"),
    PlanNumber("EQ9008", "EnergyAustralia(EQ9008)"),
    PlanNumber("EQ9009", "EcoGen(EQ9009)"),
    PlanNumber("EQ9012", "Tenix(EQ9012)"),
    PlanNumber("EQ9018", "Ausnet Transmission Group Pty Ltd(EQ9018)"),
    PlanNumber("EQ9021", "Hazelwood Power Corporation(EQ9021)"),
    PlanNumber("EQ9023", "Loy Yang(EQ9023)"),
    PlanNumber("EQ9028", "Energy Safe(EQ9028)"),
    PlanNumber("EQ9030", "Origin (EQ9030)"),
    PlanNumber("EQ9032", "Powercor(EQ9032)"),
    PlanNumber("EQ9036", "Snowy Hydro(EQ9036)"),
    PlanNumber("EQ9037", "AGL(EQ9037)"),
    PlanNumber("EQ9046", "Australian Energy Market Operator Ltd (AEMO) (Legals: Vencorp)(EQ9046)"),
    PlanNumber("EQ9048", "EnergyAustralia Yallourn(EQ9048)"),
    PlanNumber("EQ9074", "AusNet Electricity Services Pty Ltd(EQ9074)"),
    PlanNumber("EQ9084", "Jemena(EQ9084)"),
    PlanNumber("EQ9092", "UE and Multinet Pty Ltd(EQ9092)"),
]

PLAN_BENEFIT_MAPPING: List[Tuple[str, str]] = [
    ("EQ9006", "C"), ("EQ9008", "C"), ("EQ9009", "C"), ("EQ9012", "C"),
    ("EQ9018", "C"), ("EQ9021", "CHAZ"), ("EQ9023", "CLY"), ("EQ9028", "C"),
    ("EQ9030", "C"), ("EQ9032", "C"), ("EQ9036", "C"), ("EQ9037", "C"),
    ("EQ9037", "CUE"), ("EQ9046", "C"), ("EQ9048", "CYAL"), ("EQ9074", "C"),
    ("EQ9074", "CUE"), ("EQ9084", "C"), ("EQ9084", "CUE"), ("EQ9092", "CUE"),
]


def _rules(spec: Dict[str, Tuple[int, int]]) -> Tuple[BenefitClassRule, ...]:
    return tuple(BenefitClassRule(cls, lo, hi) for cls, (lo, hi) in spec.items())


_ANY = (NO_LIMIT, NO_LIMIT)
_STANDARD = ("C", "CHAZ", "CLY", "CUE", "CYAL")

PAYMENT_TYPES: List[PaymentType] = [
    PaymentType("LSBEN", "Leaving Service Benefit", _rules({
        **{c: (NO_LIMIT, 55) for c in _STANDARD},
        "FA": (56, NO_LIMIT), "FB": (56, NO_LIMIT),
        "ALCAN": (NO_LIMIT, 54), "CRA": (NO_LIMIT, 56), "BOC-DB": (NO_LIMIT, 54),
    })),
    PaymentType("RBEN", "Retrenchment Benefit", _rules({
        **{c: (NO_LIMIT, 55) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY, "CRA": _ANY,
    })),
    PaymentType("ERBEN", "Early Retirement Benefit", _rules({
        **{c: (55, 64) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY, "ALCAN": _ANY, "CRA": _ANY, "BOC-DB": _ANY,
    })),
    PaymentType("NRBEN", "Normal Retirement Benefit", _rules({
        **{c: (65, 65) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY, "ALCAN": _ANY, "CRA": _ANY, "BOC-DB": _ANY,
    })),
    PaymentType("LRBEN", "Late Retirement Benefit", _rules({
        "C": (65, NO_LIMIT), "FA": _ANY, "FB": _ANY, "ALCAN": _ANY, "CRA": _ANY,
    })),
    PaymentType("DBEN", "Death Benefit", _rules({
        **{c: (NO_LIMIT, 64) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY, "ALCAN": _ANY, "CRA": _ANY, "BOC-DB": _ANY,
    })),
    PaymentType("TPDBEN", "Total and Permanent Disablement", _rules({
        **{c: (NO_LIMIT, 64) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY, "ALCAN": _ANY, "CRA": _ANY, "BOC-DB": _ANY,
    })),
    PaymentType("TEMPDIS", "Temporary Disablement", _rules({
        **{c: (NO_LIMIT, 64) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY,
    })),
    PaymentType("DEFBEN", "Deferred Benefit", _rules({c: _ANY for c in _STANDARD})),
    PaymentType("MRB1", "Minimum Requisite Benefit 1", _rules({"C": _ANY})),
    PaymentType("ILLHBEN", "Ill Health Benefit", _rules({
        **{c: (NO_LIMIT, 55) for c in _STANDARD},
        "FA": _ANY, "FB": _ANY, "CRA": _ANY,
    })),
]


def get_payment_type(payment_type_id: str) -> Optional[PaymentType]:
    return next((pt for pt in PAYMENT_TYPES if pt.id == payment_type_id), None)


def payment_type_description(payment_type_id: str) -> str:
    payment_type = get_payment_type(payment_type_id)
    return payment_type.value if payment_type else ""


def payment_types_for(benefit_class: str) -> List[PaymentType]:
    if not benefit_class:
        return []
    return [pt for pt in PAYMENT_TYPES if any(bc.id == benefit_class for bc in pt.benefit_classes)]


def plan_numbers_for(benefit_class: str, search: str = "") -> List[PlanNumber]:
    """Plans mapped to a benefit class, optionally filtered by a case-insensitive search."""
    if not benefit_class:
        return []
    mapped = {plan for plan, cls in PLAN_BENEFIT_MAPPING if cls == benefit_class}
    plans = [p for p in PLAN_NUMBERS if p.id in mapped]
    term = search.strip().lower()
    if term:
        plans = [p for p in plans if term in p.value.lower()]
    return plans


def age_rule(payment_type_id: str, benefit_class: str) -> Optional[BenefitClassRule]:
    payment_type = get_payment_type(payment_type_id)
    if payment_type is None:
        return None
    return next((bc for bc in payment_type.benefit_classes if bc.id == benefit_class), None)


def calculate_age(birth_date: date, on_date: date) -> int:
    """Whole years between two dates, never negative."""
    if not birth_date or not on_date:
        return 0
    age = on_date.year - birth_date.year
    if (on_date.month, on_date.day) < (birth_date.month, birth_date.day):
        age -= 1
    return max(0, age)
