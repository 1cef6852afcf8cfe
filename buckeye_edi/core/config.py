"""
EDI Billing Configuration
Interchange identity and TMHP gateway connection settings.
Source: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
Verified: 2026-10-16
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buckeye_edi.core.enums import SegmentTerminator, UsageIndicator
from buckeye_edi.services.edi.sftp_delivery import SftpConfig
from buckeye_edi.services.edi.x12_base import X12Delimiters

# Fallback repetition separators, in order of preference
REPETITION_CANDIDATES = ("^", "|", "!", ">")


class EDISettings(BaseSettings):
    """
    Outbound X12 interchange settings.

    All settings are prefixed with EDI_ in the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="EDI_",
    )

    # =========================================================================
    # Delimiters
    # =========================================================================
    SEGMENT_TERMINATOR: SegmentTerminator = Field(
        default=SegmentTerminator.TILDE,
        description="Segment terminator: '~' for strict compliance or a newline",
    )
    COMPONENT_SEPARATOR: str = Field(
        default=":",
        min_length=1,
        max_length=1,
        description="Component separator declared in ISA16",
    )
    REPETITION_SEPARATOR: str = Field(
        default="^",
        min_length=1,
        max_length=1,
        description="Repetition separator declared in ISA11",
    )

    # =========================================================================
    # Interchange Identity
    # =========================================================================
    USAGE_INDICATOR: UsageIndicator = Field(
        default=UsageIndicator.PRODUCTION,
        description="ISA15: P for production, T for test files",
    )
    SENDER_QUALIFIER: str = Field(default="ZZ", description="ISA05 interchange ID qualifier")
    RECEIVER_QUALIFIER: str = Field(default="ZZ", description="ISA07 interchange ID qualifier")
    RECEIVER_NAME: str = Field(default="TMHP", description="Loop 1000B receiver name")
    RECEIVER_ID: str = Field(default="330897513", description="Loop 1000B / ISA08 receiver ID")
    DEFAULT_SUBMITTER_ID: Optional[str] = Field(
        default=None,
        description="Submitter ID used when a clinic has none configured",
    )

    # =========================================================================
    # Claim Defaults
    # =========================================================================
    DEFAULT_PAYER_NAME: str = Field(default="Texas Medicaid", description="Payer name when none is stored")
    DEFAULT_PAYER_ID: str = Field(default="330897513", description="Payer ID when none is stored")
    DEFAULT_TAXONOMY_CODE: str = Field(
        default="225100000X",
        description="Provider taxonomy when none is stored (Physical Therapist)",
    )
    DEFAULT_PLACE_OF_SERVICE: str = Field(default="11", description="Place of service (11 = Office)")
    DEFAULT_SERVICE_TYPE_CODE: str = Field(
        default="30",
        description="270 service type code (30 = Health Benefit Plan Coverage)",
    )

    @field_validator("COMPONENT_SEPARATOR", "REPETITION_SEPARATOR")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if v.isalnum() or v.isspace():
            raise ValueError("Separators must be a single punctuation character")
        return v

    @model_validator(mode="after")
    def validate_delimiters(self) -> "EDISettings":
        """
        Resolve the repetition separator when only the component separator
        was changed, then reject any remaining collision.
        """
        if (
            self.REPETITION_SEPARATOR == self.COMPONENT_SEPARATOR
            and "REPETITION_SEPARATOR" not in self.model_fields_set
        ):
            taken = {"*", self.SEGMENT_TERMINATOR.value, self.COMPONENT_SEPARATOR}
            self.REPETITION_SEPARATOR = next(c for c in REPETITION_CANDIDATES if c not in taken)
        # Raises ValueError on duplicates, surfaced as a ValidationError
        X12Delimiters(
            element="*",
            segment=self.SEGMENT_TERMINATOR.value,
            component=self.COMPONENT_SEPARATOR,
            repetition=self.REPETITION_SEPARATOR,
        )
        return self

    @property
    def delimiters(self) -> X12Delimiters:
        return X12Delimiters(
            element="*",
            segment=self.SEGMENT_TERMINATOR.value,
            component=self.COMPONENT_SEPARATOR,
            repetition=self.REPETITION_SEPARATOR,
        )


class TMHPSftpSettings(BaseSettings):
    """
    TMHP EDI Gateway SFTP credentials.

    Credentials are assigned during provider enrollment; all settings are
    prefixed with TMHP_SFTP_ in the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="TMHP_SFTP_",
    )

    HOST: Optional[str] = Field(default=None, description="Gateway hostname")
    PORT: int = Field(default=22, ge=1, le=65535, description="Gateway SSH port")
    USERNAME: Optional[str] = Field(default=None, description="Login username")
    PASSWORD: Optional[str] = Field(default=None, description="Login password")
    KEY_PATH: Optional[str] = Field(default=None, description="Path to an RSA or Ed25519 private key")
    KEY_PASSPHRASE: Optional[str] = Field(default=None, description="Private key passphrase")
    REMOTE_DIR: str = Field(default="/inbound", description="Upload directory for 837P files")
    RESPONSE_DIR: str = Field(default="/outbound", description="Download directory for 835 files")
    TIMEOUT: float = Field(default=30.0, gt=0, description="Connection timeout (seconds)")

    @property
    def is_configured(self) -> bool:
        """Host, username and one credential are all present."""
        return bool(self.HOST and self.USERNAME and (self.PASSWORD or self.KEY_PATH))

    def to_config(self) -> SftpConfig:
        return SftpConfig(
            host=self.HOST or "",
            username=self.USERNAME or "",
            port=self.PORT,
            password=self.PASSWORD,
            private_key_path=self.KEY_PATH,
            private_key_passphrase=self.KEY_PASSPHRASE,
            remote_dir=self.REMOTE_DIR,
            response_dir=self.RESPONSE_DIR,
            timeout=self.TIMEOUT,
        )


# Singleton instances
_edi_settings: Optional[EDISettings] = None
_sftp_settings: Optional[TMHPSftpSettings] = None


def get_edi_settings() -> EDISettings:
    """
    Get cached EDI settings instance.

    Returns:
        EDISettings instance
    """
    global _edi_settings
    if _edi_settings is None:
        _edi_settings = EDISettings()
    return _edi_settings


def get_sftp_settings() -> TMHPSftpSettings:
    """
    Get cached TMHP SFTP settings instance.

    Returns:
        TMHPSftpSettings instance
    """
    global _sftp_settings
    if _sftp_settings is None:
        _sftp_settings = TMHPSftpSettings()
    return _sftp_settings
