import base64
from typing import Optional

from pydantic import BaseModel, Field


class BytesModel(BaseModel):
    """Model for a serialized byte range"""
    b64: str = Field(..., description="Base64 encoded bytes")
    length: int = Field(..., ge=0, description="Number of decoded bytes")
    offset: int = Field(default=0, ge=0, description="File offset of the first byte")

    def to_bytes(self) -> bytes:
        """Convert to raw bytes"""
        return base64.b64decode(self.b64.encode('ascii'))

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> 'BytesModel':
        """Create from raw bytes"""
        return cls(
            b64=base64.b64encode(bytes(data)).decode('ascii'),
            length=len(data),
            offset=offset
        )


class ClientOptionsModel(BaseModel):
    """Model for ClientOptions API representation"""
    storage_type: str = Field(default="STORE", description="STORE or NO_STORE")
    under_storage_type: str = Field(default="PERSIST", description="PERSIST or NO_PERSIST")


class FileInfoModel(BaseModel):
    """Model for FileInfo API representation"""
    file_id: int = Field(..., description="File handle")
    path: str = Field(..., description="Normalized logical path")
    length: int = Field(default=0, description="Committed length in bytes")
    is_folder: bool = Field(default=False, description="True for directories")
    is_complete: bool = Field(default=False, description="True once the file was committed")
    in_memory: bool = Field(default=False, description="Cached in the memory tier")
    persisted: bool = Field(default=False, description="Stored in the under-storage")
    creation_time_ms: int = Field(default=0, description="Creation time in epoch milliseconds")


class CreateFileRequest(BaseModel):
    """Request model for creating an empty file"""
    path: str
    options: ClientOptionsModel = Field(default_factory=ClientOptionsModel)


class CompleteFileRequest(BaseModel):
    """Request model for committing the bytes of an output stream"""
    data: BytesModel
    options: ClientOptionsModel = Field(default_factory=ClientOptionsModel)


class ErrorModel(BaseModel):
    """Error body returned under ``detail`` for failed requests"""
    error: str
    message: str
    path: Optional[str] = None
    file_id: Optional[int] = None
