"""Static tables for standardized forms the classifier recognises."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class KnownForm:
    """Field-name suffix tables for one standardized form.

    ``markers`` must all be present for a field set to count as this form.
    ``labels`` and ``auto_map`` are keyed by field-name suffix.
    """

    name: str
    markers: Tuple[str, ...]
    labels: Mapping[str, str] = field(default_factory=dict)
    auto_map: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "markers", tuple(self.markers))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))
        object.__setattr__(self, "auto_map", MappingProxyType(dict(self.auto_map)))


# IRS Form W-9 (Rev. October 2018) AcroForm field names
W9_FORM = KnownForm(
    name="IRS Form W-9",
    markers=(
        "Page1[0].f1_1[0]",
        "Address[0].f1_7[0]",
        "EmployerID[0].f1_14[0]",
    ),
    labels={
        "Page1[0].f1_1[0]": "Name (as shown on your income tax return)",
        "Page1[0].f1_2[0]": "Business name/disregarded entity name",
        "FederalClassification[0].c1_1[0]": "Individual/sole proprietor or single-member LLC",
        "FederalClassification[0].c1_1[1]": "C Corporation",
        "FederalClassification[0].c1_1[2]": "S Corporation",
        "FederalClassification[0].c1_1[3]": "Partnership",
        "FederalClassification[0].c1_1[4]": "Trust/estate",
        "FederalClassification[0].c1_1[5]": "Limited liability company",
        "FederalClassification[0].c1_1[6]": "Other classification",
        "FederalClassification[0].f1_3[0]": "LLC tax classification (C, S, or P)",
        "FederalClassification[0].f1_4[0]": "Other classification (describe)",
        "Exemptions[0].f1_5[0]": "Exempt payee code",
        "Exemptions[0].f1_6[0]": "Exemption from FATCA reporting code",
        "Address[0].f1_7[0]": "Address (number, street, and apt. or suite no.)",
        "Address[0].f1_8[0]": "City, state, and ZIP code",
        "Page1[0].f1_9[0]": "Requester's name and address",
        "Page1[0].f1_10[0]": "List account number(s)",
        "SSN[0].f1_11[0]": "Social security number (first 3 digits)",
        "SSN[0].f1_12[0]": "Social security number (middle 2 digits)",
        "SSN[0].f1_13[0]": "Social security number (last 4 digits)",
        "EmployerID[0].f1_14[0]": "Employer identification number (first 2 digits)",
        "EmployerID[0].f1_15[0]": "Employer identification number (last 7 digits)",
    },
    auto_map={
        "Page1[0].f1_1[0]": "customer.name",
        "Page1[0].f1_2[0]": "customer.business_name",
        "Address[0].f1_7[0]": "customer.address",
        "Page1[0].f1_9[0]": "provider.provider_name",
        "Page1[0].f1_10[0]": "customer.account_number",
    },
)

DEFAULT_KNOWN_FORMS: Tuple[KnownForm, ...] = (W9_FORM,)


__all__ = ["DEFAULT_KNOWN_FORMS", "KnownForm", "W9_FORM"]
