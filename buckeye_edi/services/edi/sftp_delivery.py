"""
TMHP EDI Gateway SFTP Delivery.

Uploads generated 837P files to the Texas Medicaid & Healthcare
Partnership gateway and retrieves 835 remittance files from its outbound
directory. Delivery is a side effect separate from generation: every
failure is reported as a result object and never retried automatically.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, List, Optional, Tuple
import io
import logging
import posixpath
import re
import secrets
import socket
import stat

import paramiko
from paramiko.ssh_exception import SSHException

logger = logging.getLogger(__name__)

DEFAULT_PORT = 22
DEFAULT_REMOTE_DIR = "/inbound"
DEFAULT_RESPONSE_DIR = "/outbound"
DEFAULT_TIMEOUT = 30.0

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


class SftpDeliveryError(Exception):
    """Connection, authentication or transfer failure."""

    pass


@dataclass
class SftpConfig:
    """Explicit connection configuration for the delivery adapter."""
    host: str
    username: str
    port: int = DEFAULT_PORT
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_passphrase: Optional[str] = None
    remote_dir: str = DEFAULT_REMOTE_DIR
    response_dir: str = DEFAULT_RESPONSE_DIR
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class SftpUploadResult:
    """Outcome of one upload attempt."""
    success: bool
    remote_file_path: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    error: Optional[str] = None


@dataclass
class SftpDownloadResult:
    """Outcome of an 835 download run."""
    success: bool
    files: List[Tuple[str, str]] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SftpConnectionTest:
    success: bool
    error: Optional[str] = None


def generate_file_name(
    submitter_id: str,
    now: Optional[datetime] = None,
    unique_suffix: Optional[str] = None,
) -> str:
    """
    Name for an uploaded 837P file.

    Format: 837P_{submitterId}_{YYYYMMDD}_{HHMMSS}_{suffix}.edi. The suffix
    is normally the interchange control number; without one, four random
    digits are used.
    """
    now = now or datetime.now()
    clean_id = _NON_ALNUM.sub("", submitter_id or "")[:20]
    suffix = _NON_ALNUM.sub("", unique_suffix or "") or f"{secrets.randbelow(10000):04d}"
    return f"837P_{clean_id}_{now:%Y%m%d}_{now:%H%M%S}_{suffix}.edi"


def is_remittance_file(name: str) -> bool:
    lowered = name.lower()
    return lowered.endswith(".835") or lowered.endswith(".edi") or "835" in lowered


class TMHPSftpDelivery:
    """
    SFTP delivery adapter for the TMHP EDI Gateway.

    Usage:
        delivery = TMHPSftpDelivery(SftpConfig(host="sftp.tmhp.com", username="buckeye", password="..."))
        result = delivery.upload(edi_content, submitter_id="BUCKEYE01", control_number="000000123")
        if not result.success:
            log.warning(result.error)
    """

    def __init__(self, config: SftpConfig):
        self.config = config

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def _load_private_key(self) -> paramiko.PKey:
        path = self.config.private_key_path
        passphrase = self.config.private_key_passphrase
        with open(path, "r", encoding="utf-8") as handle:
            key_data = handle.read()
        try:
            return paramiko.RSAKey.from_private_key(io.StringIO(key_data), password=passphrase)
        except SSHException:
            return paramiko.Ed25519Key.from_private_key(io.StringIO(key_data), password=passphrase)

    def _connect(self) -> Tuple[paramiko.Transport, paramiko.SFTPClient]:
        config = self.config
        if not config.host or not config.username:
            raise SftpDeliveryError("Host and username are required")
        if not config.password and not config.private_key_path:
            raise SftpDeliveryError("Password or private key is required")

        sock = socket.create_connection((config.host, config.port or DEFAULT_PORT), timeout=config.timeout)
        transport = paramiko.Transport(sock)
        transport.banner_timeout = config.timeout
        transport.auth_timeout = config.timeout
        try:
            if config.private_key_path:
                transport.connect(username=config.username, pkey=self._load_private_key())
            else:
                transport.connect(username=config.username, password=config.password)
            sftp = paramiko.SFTPClient.from_transport(transport)
            if sftp is None:
                raise SftpDeliveryError("Failed to open SFTP channel")
            sftp.get_channel().settimeout(config.timeout)
        except Exception:
            transport.close()
            raise
        return transport, sftp

    @contextmanager
    def _session(self) -> Iterator[paramiko.SFTPClient]:
        transport, sftp = self._connect()
        logger.info(f"Connected to TMHP SFTP {self.config.host}:{self.config.port}")
        try:
            yield sftp
        finally:
            try:
                sftp.close()
            finally:
                transport.close()

    @staticmethod
    def _ensure_directory(sftp: paramiko.SFTPClient, path: str) -> None:
        """Create ``path`` and any missing parents."""
        current = "/" if path.startswith("/") else ""
        for part in [p for p in path.split("/") if p]:
            current = posixpath.join(current, part) if current else part
            try:
                sftp.stat(current)
            except FileNotFoundError:
                sftp.mkdir(current)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def upload(
        self,
        edi_content: str,
        submitter_id: str,
        control_number: Optional[str] = None,
    ) -> SftpUploadResult:
        """
        Upload one 837P file to the inbound directory.

        The remote size is checked after the transfer; an empty file counts
        as a failure. Nothing is retried.
        """
        remote_dir = self.config.remote_dir or DEFAULT_REMOTE_DIR
        file_name = generate_file_name(submitter_id, unique_suffix=control_number)
        remote_path = posixpath.join(remote_dir, file_name)
        payload = edi_content.encode("utf-8")

        try:
            with self._session() as sftp:
                self._ensure_directory(sftp, remote_dir)
                sftp.putfo(io.BytesIO(payload), remote_path)
                size = sftp.stat(remote_path).st_size or 0
                if size == 0:
                    raise SftpDeliveryError("Uploaded file is empty, possible write failure")
        except (SftpDeliveryError, SSHException, OSError) as e:
            logger.error(f"TMHP SFTP upload of {file_name} failed: {e}")
            return SftpUploadResult(success=False, error=str(e) or e.__class__.__name__)

        logger.info(f"Uploaded {remote_path} ({size} bytes)")
        return SftpUploadResult(
            success=True,
            remote_file_path=remote_path,
            file_size=size,
            uploaded_at=datetime.now(timezone.utc),
        )

    def download_835_responses(self) -> SftpDownloadResult:
        """
        Fetch remittance files from the response directory.

        Files that fail individually are logged and skipped.
        """
        response_dir = self.config.response_dir or DEFAULT_RESPONSE_DIR
        files: List[Tuple[str, str]] = []
        try:
            with self._session() as sftp:
                try:
                    entries = sftp.listdir_attr(response_dir)
                except FileNotFoundError:
                    return SftpDownloadResult(success=True)

                for entry in entries:
                    if not stat.S_ISREG(entry.st_mode or 0) or not is_remittance_file(entry.filename):
                        continue
                    remote_path = posixpath.join(response_dir, entry.filename)
                    try:
                        with sftp.open(remote_path, "rb") as handle:
                            content = handle.read().decode("utf-8", errors="replace")
                    except (SSHException, OSError) as e:
                        logger.error(f"Failed to download {entry.filename}: {e}")
                        continue
                    files.append((entry.filename, content))
        except (SftpDeliveryError, SSHException, OSError) as e:
            logger.error(f"Failed to download 835 responses: {e}")
            return SftpDownloadResult(success=False, files=files, error=str(e))

        logger.info(f"Downloaded {len(files)} remittance file(s) from {response_dir}")
        return SftpDownloadResult(success=True, files=files)

    def test_connection(self) -> SftpConnectionTest:
        """Verify credentials and reachability by listing the home directory."""
        try:
            with self._session() as sftp:
                sftp.listdir(".")
        except (SftpDeliveryError, SSHException, OSError) as e:
            return SftpConnectionTest(success=False, error=f"Connection failed: {e}")
        return SftpConnectionTest(success=True)
