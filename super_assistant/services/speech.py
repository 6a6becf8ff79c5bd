"""
Google Cloud speech-to-text and text-to-speech.

Clients are created on first use so the service can be constructed (and
the HTTP app imported) without cloud credentials; tests inject fakes.
"""

import logging
import re
from typing import Any, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import speech, texttospeech

from super_assistant.config import SpeechConfig, settings

logger = logging.getLogger(__name__)

_SSML_RE = re.compile(r"^\s*<speak[\s>]", re.IGNORECASE)

_GOOGLE_ERRORS = (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class SpeechError(Exception):
    """Raised when synthesis or recognition cannot produce a result."""


def is_ssml(text: str) -> bool:
    return bool(_SSML_RE.match(text))


class SpeechService:
    """Thin wrapper over the Google Cloud speech clients."""

    def __init__(
        self,
        config: Optional[SpeechConfig] = None,
        tts_client: Optional[Any] = None,
        stt_client: Optional[Any] = None,
    ) -> None:
        self.config = config or settings.speech
        self._tts_client = tts_client
        self._stt_client = stt_client

    @property
    def tts_client(self) -> Any:
        if self._tts_client is None:
            try:
                self._tts_client = texttospeech.TextToSpeechClient()
            except _GOOGLE_ERRORS as e:
                raise SpeechError(f"Text-to-speech client unavailable: {e}") from e
        return self._tts_client

    @property
    def stt_client(self) -> Any:
        if self._stt_client is None:
            try:
                self._stt_client = speech.SpeechClient()
            except _GOOGLE_ERRORS as e:
                raise SpeechError(f"Speech-to-text client unavailable: {e}") from e
        return self._stt_client

    def synthesize(self, text: str) -> bytes:
        """
        Render text (or SSML) to MP3 audio.

        Raises:
            SpeechError: If the text is blank or the service call fails.
        """
        if not text or not text.strip():
            raise SpeechError("Text is required for speech synthesis")

        if is_ssml(text):
            synthesis_input = texttospeech.SynthesisInput(ssml=text)
        else:
            synthesis_input = texttospeech.SynthesisInput(text=text)

        voice = texttospeech.VoiceSelectionParams(
            language_code=self.config.tts_language,
            name=self.config.tts_voice,
        )
        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.MP3,
            speaking_rate=self.config.tts_speaking_rate,
            pitch=self.config.tts_pitch,
        )

        try:
            response = self.tts_client.synthesize_speech(
                input=synthesis_input, voice=voice, audio_config=audio_config
            )
        except _GOOGLE_ERRORS as e:
            logger.error("Speech synthesis failed: %s", e)
            raise SpeechError(f"Speech synthesis failed: {e}") from e

        if not response.audio_content:
            raise SpeechError("Speech synthesis returned no audio")
        logger.debug("Synthesized %d bytes of audio", len(response.audio_content))
        return response.audio_content

    def recognition_config(self) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.WEBM_OPUS,
            sample_rate_hertz=self.config.stt_sample_rate_hz,
            language_code=self.config.stt_language,
            model=self.config.stt_model,
            use_enhanced=True,
            enable_automatic_punctuation=True,
            max_alternatives=1,
            speech_contexts=[
                speech.SpeechContext(
                    phrases=[settings.assistant.company_name, "superannuation", "super"],
                    boost=20,
                )
            ],
        )

    def recognize(self, audio: bytes) -> str:
        """
        Transcribe a short recorded utterance.

        Raises:
            SpeechError: If no audio was given, the call fails, or nothing was recognized.
        """
        if not audio:
            raise SpeechError("Audio content is required for speech recognition")

        try:
            response = self.stt_client.recognize(
                config=self.recognition_config(),
                audio=speech.RecognitionAudio(content=audio),
            )
        except _GOOGLE_ERRORS as e:
            logger.error("Speech recognition failed: %s", e)
            raise SpeechError(f"Speech recognition failed: {e}") from e

        for result in response.results:
            if result.alternatives:
                best = result.alternatives[0]
                logger.debug("Recognized %r (confidence %.2f)", best.transcript, best.confidence)
                return best.transcript
        raise SpeechError("No transcription result")
