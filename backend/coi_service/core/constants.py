"""Shared constants and enums used across the application."""

from enum import StrEnum


class Geography(StrEnum):
    """Country a policy was written in."""

    US = "US"
    CA = "CA"


class TemplateType(StrEnum):
    """Rendering engine selected by a COI config."""

    ACORD25 = "acord25"
    HTML = "html"


class BatchStatus(StrEnum):
    """Overall outcome of one COI request across its lines of business."""

    COMPLETED = "COMPLETED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    FAILED = "FAILED"
    NOTHING_TO_GENERATE = "NOTHING_TO_GENERATE"


class LobStatus(StrEnum):
    """Outcome of generating the certificate for one line of business."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StepStatus(StrEnum):
    """Status of an individual pipeline step."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# ─── Database ─────────────────────────────────
class Collection(StrEnum):
    """MongoDB collections read by the policy-head query."""

    ACTIVE_POLICY = "ActivePolicy"
    POLICY = "Policy"
    APPLICATION_ANSWERS = "ApplicationAnswers"
    POLICY_QUOTE = "PolicyQuote"
    QUOTE = "Quote"
    APPLICATION_OWNER = "ApplicationOwner"
    APPLICATION = "Application"
    COI_RECORD = "COIRecord"


APPLICATION_ANSWERS_VERSION = 7
POLICY_VERSION = 6
QUOTE_VERSION = 9

ROOT_POLICY_KIND = "Root"
ORIGINAL_QUOTE_KIND = "Original"
CANADA_RATING_KIND = "Canada"

# Canada issues one combined certificate per policy
CANADA_DEFAULT_LOB = "GL"


# ─── Application answers (question keys) ──────
class AnswerKey(StrEnum):
    COMPANY_NAME = "BusinessInformation_100_CompanyName_WORLD_EN"
    DBA_NAME = "BusinessInformation_100_DBAName_WORLD_EN"
    MAILING_ADDRESS = "BusinessInformation_100_MailingAddress_WORLD_EN"
    BUSINESS_ADDRESS = "BusinessInformation_100_BusinessAddress_WORLD_EN"
    PROFESSION = "BusinessInformation_100_Profession_WORLD_EN"
    PROFESSION_LABEL_LIST = "professionLabelList"


# ─── Canonical defaults ───────────────────────
CANADA_INSURER_NAME = "Certain Underwriters at Lloyd's of London"
UNMANNED_AIRCRAFT_COVERAGE = "Unmanned aircraft"

CA_PRODUCER = {
    "name": "Foxquilt Insurance Services",
    "phone": "1-877-469-3569",
    "email": "support@foxquilt.com",
}

US_PRODUCER = {
    "name": "Foxquilt Insurance Services LLC",
    "phone": "(888) 555-0100",
    "email": "support@foxquilt.com",
}

EMAIL_SUBJECT = "Foxquilt Insurance - Certificate of Insurance"
ATTACHMENT_FILENAME = "certificate-of-insurance.pdf"
