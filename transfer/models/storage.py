"""Bucket, file and file chunk models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .resource import Resource


@dataclass
class Bucket(Resource):
    """A storage bucket (container metadata only)."""
    id: str
    name: str = ""
    permissions: List[str] = field(default_factory=list)
    file_security: bool = False
    enabled: bool = True
    max_file_size: Optional[int] = None
    allowed_extensions: List[str] = field(default_factory=list)
    compression: str = "none"
    encryption: bool = False
    antivirus: bool = False

    @classmethod
    def resource_name(cls) -> str:
        return "Bucket"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "permissions": self.permissions,
            "fileSecurity": self.file_security,
            "enabled": self.enabled,
            "maxFileSize": self.max_file_size,
            "allowedExtensions": self.allowed_extensions,
            "compression": self.compression,
            "encryption": self.encryption,
            "antivirus": self.antivirus,
        }


@dataclass
class File(Resource):
    """File metadata. The bytes travel separately as FileData chunks."""
    id: str
    bucket_id: str
    file_name: str
    size: int = 0
    mime_type: str = "application/octet-stream"
    signature: str = ""
    permissions: List[str] = field(default_factory=list)

    @classmethod
    def resource_name(cls) -> str:
        return "File"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "bucketId": self.bucket_id,
            "fileName": self.file_name,
            "size": self.size,
            "mimeType": self.mime_type,
            "signature": self.signature,
            "permissions": self.permissions,
        }


@dataclass
class FileData(Resource):
    """One chunk of a file's content, starting at byte ``offset``."""
    file: File
    chunk: bytes
    offset: int = 0

    @property
    def id(self) -> str:
        return self.file.id

    @property
    def end(self) -> int:
        """Offset of the last byte in this chunk."""
        return self.offset + len(self.chunk) - 1

    @classmethod
    def resource_name(cls) -> str:
        return "FileData"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "fileId": self.file.id,
            "offset": self.offset,
            "length": len(self.chunk),
        }
