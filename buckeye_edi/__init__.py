"""
Buckeye EDI.

X12 5010 billing core for outpatient physical therapy clinics: 837P claim
generation, 270 eligibility inquiries, 835 remittance parsing and TMHP
gateway delivery.
"""

__version__ = "0.1.0"
