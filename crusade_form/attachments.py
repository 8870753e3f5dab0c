"""Report attachments: recorded audio or a file chosen from disk."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from typing import Any, Optional

ATTACHMENT_FIELD = "writeup_file"
RECORDING_FILENAME = "audio_recording.wav"
RECORDING_MIME_TYPE = "audio/wav"
AUDIO_RESOURCE_TYPE = "raw"
DEFAULT_RESOURCE_TYPE = "auto"


@dataclass(frozen=True)
class Attachment:
    """Binary content waiting to be uploaded with the report."""

    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"
    recorded: bool = False

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")


def resource_type_for(attachment: Attachment) -> str:
    """Return the upload resource-type hint for ``attachment``."""

    return AUDIO_RESOURCE_TYPE if attachment.is_audio else DEFAULT_RESOURCE_TYPE


def _guess_mime_type(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def read_attachment(handle: Any, *, filename: Optional[str] = None, recorded: bool = False) -> Attachment:
    """Build an :class:`Attachment` from a Streamlit upload or recording.

    ``handle`` is anything exposing ``getvalue()`` and, optionally, ``name``
    and ``type`` (``st.file_uploader`` and ``st.audio_input`` both do).  Read
    errors propagate as ``OSError``/``ValueError`` so callers can tell the
    user the recording or file could not be used.
    """

    content = handle.getvalue()
    if not content:
        raise ValueError("The selected file or recording is empty.")

    name = filename or getattr(handle, "name", None) or RECORDING_FILENAME
    mime_type = getattr(handle, "type", None) or _guess_mime_type(name)
    if recorded and not mime_type.startswith("audio/"):
        mime_type = RECORDING_MIME_TYPE
    return Attachment(filename=name, content=bytes(content), mime_type=mime_type, recorded=recorded)


__all__ = [
    "ATTACHMENT_FIELD",
    "AUDIO_RESOURCE_TYPE",
    "Attachment",
    "DEFAULT_RESOURCE_TYPE",
    "RECORDING_FILENAME",
    "read_attachment",
    "resource_type_for",
]
