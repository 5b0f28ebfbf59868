"""Upload and download handlers."""
from .download import download_object
from .outcome import TransferOutcome
from .upload import upload_object

__all__ = ["TransferOutcome", "download_object", "upload_object"]
