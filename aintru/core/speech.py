import logging

import requests

from aintru.core import config

logger = logging.getLogger("aintru.core.speech")

DEEPGRAM_URL = "https://api.deepgram.com/v1/listen"

UNAVAILABLE_MESSAGE = "Audio transcription service not available. Please type your response."
FAILED_MESSAGE = "Audio transcription failed. Please type your response."


def transcribe_audio(audio: bytes, mimetype: str = "audio/wav") -> str:
    """Pre-recorded transcription with Deepgram nova-2; never raises."""
    if not config.DEEPGRAM_API_KEY:
        return UNAVAILABLE_MESSAGE

    try:
        resp = requests.post(
            DEEPGRAM_URL,
            params={"model": "nova-2", "smart_format": "true", "language": "en-US"},
            headers={
                "Authorization": f"Token {config.DEEPGRAM_API_KEY}",
                "Content-Type": mimetype or "audio/wav",
            },
            data=audio,
            timeout=config.LLM_TIMEOUT_S,
        )
        if resp.status_code != 200:
            logger.warning(f"[speech] Deepgram HTTP {resp.status_code}: {resp.text[:300]}")
            return FAILED_MESSAGE
        data = resp.json()
        return data["results"]["channels"][0]["alternatives"][0]["transcript"]
    except (requests.RequestException, ValueError, KeyError, IndexError) as e:
        logger.error(f"[speech] Deepgram transcription error: {e}")
        return FAILED_MESSAGE
