"""
Audio validation and temporary file handling
"""

import os
import tempfile
from typing import Optional

from mutagen import File as MutagenFile

from visit_engine.config import settings, Settings
from visit_engine.core.exceptions import ValidationError
from visit_engine.core.logging import get_logger
from visit_engine.models.visit import AudioArtifact

logger = get_logger(__name__)


class AudioProcessor:
    """Audio validation and temporary storage for one processing run"""

    def __init__(self, config: Settings = settings):
        self.supported_formats = set(config.supported_audio_formats)
        self.max_size_bytes = config.max_file_size_mb * 1024 * 1024
        self.temp_dir = config.temp_audio_dir

    def validate(self, audio: Optional[AudioArtifact]) -> str:
        """
        Validates the uploaded audio and returns its effective content type.
        Raises ValidationError for missing, empty, oversized or unsupported audio.
        """
        if audio is None or not audio.data:
            raise ValidationError("Audio file is required")

        if audio.size_bytes > self.max_size_bytes:
            raise ValidationError(
                f"Audio file too large: {audio.size_bytes} bytes (max {self.max_size_bytes})"
            )

        content_type = audio.content_type
        if not content_type or content_type == "application/octet-stream":
            content_type = self.detect_content_type(audio.data, audio.file_name)

        if content_type not in self.supported_formats:
            logger.warning(f"Unsupported audio format: {content_type}")
            raise ValidationError(f"Unsupported audio format: {content_type}")

        logger.info(f"Received {audio.size_bytes} bytes of {content_type} audio.")
        return content_type

    async def save_temporary(self, audio: AudioArtifact, content_type: Optional[str] = None) -> str:
        """Writes the audio to a temporary file and returns its path. The caller owns the file."""
        suffix = self._get_extension(content_type or audio.content_type, audio.file_name)
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix, dir=self.temp_dir) as temp_file:
            temp_file.write(audio.data)
            temp_file_path = temp_file.name
        logger.info(f"Audio saved temporarily to {temp_file_path}")
        return temp_file_path

    async def cleanup(self, file_path: Optional[str]) -> bool:
        """Deletes the temporary file. Returns True if a file was removed."""
        if not file_path or not os.path.exists(file_path):
            return False
        try:
            os.unlink(file_path)
        except OSError as e:
            logger.error(f"Error cleaning up file {file_path}: {e}")
            return False
        logger.info(f"Cleaned up temporary file: {file_path}")
        return True

    def probe_duration(self, file_path: str) -> float:
        """Audio duration in seconds from the file headers, 0.0 when unknown."""
        try:
            audio = MutagenFile(file_path)
            if audio is None or not hasattr(audio.info, "length"):
                return 0.0
            return float(audio.info.length)
        except Exception as e:
            logger.warning(f"Could not extract duration using mutagen: {e}")
            return 0.0

    @staticmethod
    def _get_extension(content_type: Optional[str], file_name: Optional[str]) -> str:
        """Maps content type (or the original file name) to a file extension."""
        if file_name:
            _, ext = os.path.splitext(file_name)
            if ext:
                return ext.lower()
        return {
            "audio/mpeg": ".mp3",
            "audio/mp3": ".mp3",
            "audio/wav": ".wav",
            "audio/x-wav": ".wav",
            "audio/mp4": ".mp4",
            "audio/m4a": ".m4a",
            "audio/x-m4a": ".m4a",
            "audio/ogg": ".ogg",
            "audio/webm": ".webm",
        }.get(content_type or "", ".tmp")

    @staticmethod
    def detect_content_type(audio_data: bytes, file_name: Optional[str] = None) -> str:
        """Detects Content-Type based on file signature or file name."""
        # MP4/M4A carry 'ftyp' a few bytes in
        if b'ftyp' in audio_data[4:12]:
            return "audio/mp4"

        signatures = {
            b'ID3': "audio/mpeg",  # MP3 with ID3 tag
            b'\xff\xfb': "audio/mpeg",
            b'\xff\xf3': "audio/mpeg",
            b'\xff\xf2': "audio/mpeg",
            b'RIFF': "audio/wav",
            b'OggS': "audio/ogg",
            b'\x1a\x45\xdf\xa3': "audio/webm",
        }
        for signature, detected_type in signatures.items():
            if audio_data.startswith(signature):
                return detected_type

        if file_name:
            ext_map = {
                '.mp3': 'audio/mpeg',
                '.wav': 'audio/wav',
                '.m4a': 'audio/mp4',
                '.mp4': 'audio/mp4',
                '.ogg': 'audio/ogg',
                '.webm': 'audio/webm',
            }
            _, ext = os.path.splitext(file_name)
            if ext.lower() in ext_map:
                return ext_map[ext.lower()]

        logger.warning("Could not detect specific audio type.")
        return "application/octet-stream"
