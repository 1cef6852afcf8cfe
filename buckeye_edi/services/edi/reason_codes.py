"""
Remittance Reason Code Lookup.

Source: X12 External Code Lists (CARC 139, RARC 411), www.x12.org/codes
Verified: 2026-10-16

Descriptions for the claim adjustment reason codes (CAS), remittance
remark codes (MOA/LQ) and provider-level adjustment reasons (PLB) that
show up on outpatient therapy remittances from TMHP and commercial payers.
"""

from enum import Enum
from typing import Optional


class DenialCategory(str, Enum):
    """Work queue a denial reason belongs to."""
    VISIT_LIMIT = "visit_limit"
    NO_PRIOR_AUTH = "no_prior_auth"
    BUNDLED = "bundled"
    MEDICAL_NECESSITY = "medical_necessity"
    NOT_COVERED = "not_covered"
    OTHER = "other"


CARC_CODES = {
    "1": "Deductible amount",
    "2": "Coinsurance amount",
    "3": "Copayment amount",
    "4": "The procedure code is inconsistent with the modifier used or a required modifier is missing",
    "5": "The procedure code/bill type is inconsistent with the place of service",
    "6": "The procedure/revenue code is inconsistent with the patient's age",
    "11": "The diagnosis is inconsistent with the procedure",
    "15": "The authorization number is missing, invalid, or does not apply to the billed services or provider",
    "16": "Claim/service lacks information or has submission/billing error(s)",
    "18": "Exact duplicate claim/service",
    "22": "This care may be covered by another payer per coordination of benefits",
    "23": "The impact of prior payer(s) adjudication including payments and/or adjustments",
    "24": "Charges are covered under a capitation agreement/managed care plan",
    "26": "Expenses incurred prior to coverage",
    "27": "Expenses incurred after coverage terminated",
    "29": "The time limit for filing has expired",
    "31": "Patient cannot be identified as our insured",
    "32": "Our records indicate that this dependent is not an eligible dependent as defined",
    "33": "Insured has no dependent coverage",
    "35": "Lifetime benefit maximum has been reached",
    "39": "Services denied at the time authorization/pre-certification was requested",
    "45": "Charge exceeds fee schedule/maximum allowable or contracted/legislated fee arrangement",
    "50": "These are non-covered services because this is not deemed a medical necessity by the payer",
    "55": "Procedure/treatment/drug is deemed experimental/investigational by the payer",
    "56": "Procedure/treatment has not been deemed medically necessary by the payer",
    "58": "Treatment was deemed by the payer to have been rendered in an inappropriate or invalid place of service",
    "59": "Processed based on multiple or concurrent procedure rules",
    "96": "Non-covered charge(s). At least one Remark Code must be provided",
    "97": "The benefit for this service is included in the payment/allowance for another service/procedure that has already been adjudicated",
    "109": "Claim/service not covered by this payer/contractor. You must send the claim/service to the correct payer/contractor",
    "119": "Benefit maximum for this time period or occurrence has been reached",
    "131": "Claim specific negotiated discount",
    "140": "Patient/Insured health identification number and name do not match",
    "146": "Diagnosis was invalid for the date(s) of service reported",
    "150": "Payer deems the information submitted does not support this level of service",
    "151": "Payment adjusted because the payer deems the information submitted does not support this many/frequency of services",
    "167": "This (these) diagnosis(es) is (are) not covered",
    "170": "Payment is denied when performed/billed by this type of provider",
    "171": "Payment is denied when performed/billed by this type of provider in this type of facility",
    "179": "Services are not covered when performed/billed by this type of provider",
    "181": "Procedure code was invalid on the date of service",
    "182": "Procedure modifier was invalid on the date of service",
    "185": "The rendering provider is not eligible to perform the service billed",
    "193": "Original payment decision is being maintained",
    "197": "Precertification/authorization/notification/pre-treatment absent",
    "198": "Precertification/authorization/notification exceeded",
    "204": "This service/equipment/drug is not covered under the patient's current benefit plan",
    "226": "Information requested from the Billing/Rendering Provider was not provided or was insufficient/incomplete",
    "234": "This procedure is not paid separately",
    "236": "This procedure or procedure/modifier combination is not compatible with another procedure or procedure/modifier combination provided on the same day",
    "242": "Services not provided by network/primary care providers",
    "253": "Sequestration - reduction in federal payment",
    "A1": "Claim/Service denied. At least one Remark Code must be provided",
    "B1": "Non-covered visits",
    "B5": "Coverage/program guidelines were not met",
    "B7": "This provider was not certified/eligible to be paid for this procedure/service on this date of service",
    "B13": "Previously paid. Payment for this claim/service may have been provided in a previous payment",
}

RARC_CODES = {
    "M15": "Separately billed services/tests have been bundled as they are considered components of the same procedure",
    "M20": "Missing/incomplete/invalid HCPCS",
    "M24": "Missing/incomplete/invalid number of units of service",
    "M51": "Missing/incomplete/invalid procedure code(s)",
    "M62": "Missing/incomplete/invalid treatment authorization code",
    "M76": "Missing/incomplete/invalid diagnosis or condition",
    "M77": "Missing/incomplete/invalid place of service",
    "M79": "Missing/incomplete/invalid charge",
    "M80": "Not covered when performed during the same session/date as a previously processed service for the patient",
    "MA01": "Alert: If you do not agree with what we approved for these services, you may appeal our decision",
    "MA04": "Secondary payment cannot be considered without the identity of or payment information from the primary payer",
    "MA07": "The claim information has also been forwarded to Medicaid for review",
    "MA130": "Your claim contains incomplete and/or invalid information, and no appeal rights are afforded because the claim is unprocessable",
    "N1": "Alert: You may appeal this decision",
    "N4": "Missing/Incomplete/Invalid prior Insurance Carrier(s) EOB",
    "N16": "Missing/incomplete/invalid patient identifier",
    "N19": "Procedure code incidental to primary procedure",
    "N20": "Service not payable with other service rendered on the same date",
    "N30": "Patient ineligible for this service",
    "N35": "Missing/incomplete/invalid provider identifier for this claim/service",
    "N95": "This provider type/provider specialty may not bill this service",
    "N362": "The number of Days or Units of Service exceeds our acceptable maximum",
    "N386": "This decision was based on a National Coverage Determination (NCD)",
    "N425": "This decision was based on a Local Coverage Determination (LCD)",
    "N430": "Procedure code is inconsistent with the units of service",
    "N432": "Alert: Service is not payable with the modifier billed",
    "N440": "This service requires a modifier and none was billed",
    "N479": "Missing/Invalid Referring Provider information",
    "N519": "Invalid combination of HCPCS modifiers",
    "N527": "Payment reduced based on outpatient therapy/rehabilitation services annual cap",
    "N538": "Duplicate of a claim/service processed by another payer",
    "N574": "Our records indicate this service was previously denied or adjusted",
    "N580": "Corrected claim. This claim supersedes a previously submitted/processed claim",
    "N657": "This claim/service was either processed or denied based on the applicable fee schedule",
    "N700": "Prior authorization/pre-certification absent",
    "N702": "This is an informational remittance advice. No payment is being made",
}

PLB_REASON_CODES = {
    "50": "Late Charge",
    "51": "Interest Penalty Charge",
    "72": "Authorized Return",
    "90": "Early Payment Allowance",
    "AP": "Acceleration of Benefits",
    "B2": "Rebate",
    "B3": "Recovery Allowance",
    "BD": "Bad Debt Adjustment",
    "BN": "Bonus",
    "C5": "Temporary Allowance",
    "CS": "Adjustment",
    "CT": "Capitation Payment",
    "E3": "Withholding",
    "FB": "Forwarding Balance",
    "FC": "Fund Allocation",
    "IP": "Incentive Premium Payment",
    "IR": "Internal Revenue Service Withholding",
    "IS": "Interim Settlement",
    "J1": "Nonreimbursable",
    "L3": "Penalty",
    "L6": "Interest Owed",
    "LE": "Levy",
    "LS": "Lump Sum",
    "OB": "Offset of Non-Federal Audit Findings",
    "PI": "Periodic Interim Payment",
    "PL": "Payment Final",
    "RA": "Retro-Activity Adjustment",
    "SL": "Student Loan Repayment",
    "TL": "Third Party Liability",
    "WO": "Overpayment Recovery",
    "WU": "Unspecified Recovery",
}

RECOUPMENT_PLB_CODES = frozenset({"WO", "WU"})

_DENIAL_CATEGORIES = {
    DenialCategory.VISIT_LIMIT: {"35", "119", "151"},
    DenialCategory.NO_PRIOR_AUTH: {"15", "39", "197", "198"},
    DenialCategory.BUNDLED: {"59", "97", "234", "236"},
    DenialCategory.MEDICAL_NECESSITY: {"50", "56", "150"},
    DenialCategory.NOT_COVERED: {"4", "5", "96", "109", "170", "171", "179", "204", "A1", "B1", "B5"},
    DenialCategory.OTHER: {"18", "29", "31", "32", "33"},
}


def lookup_carc(code: str) -> str:
    return CARC_CODES.get(code, f"Unknown adjustment reason code: {code}")


def lookup_rarc(code: str) -> str:
    return RARC_CODES.get(code, f"Unknown remark code: {code}")


def lookup_plb_reason(code: str) -> str:
    return PLB_REASON_CODES.get(code, f"Unknown provider adjustment reason: {code}")


def denial_category(code: str) -> Optional[DenialCategory]:
    """
    Classify a CARC into a denial work queue.

    Returns None for reasons that are ordinary adjustments (fee schedule
    reductions, deductibles) rather than denials.
    """
    for category, codes in _DENIAL_CATEGORIES.items():
        if code in codes:
            return category
    return None
